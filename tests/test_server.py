"""Tests for the local server and change watcher."""

import os
import threading
import urllib.request
import pytest

from disenchanted_pkg.server import ChangeWatcher, make_server, serve, snapshot


class TestSnapshot:

    def test_lists_files_and_skips_hidden_dirs(self, temp_dir):
        os.makedirs(os.path.join(temp_dir, '.git'))
        with open(os.path.join(temp_dir, '.git', 'HEAD'), 'w') as f:
            f.write('ref')
        with open(os.path.join(temp_dir, 'post.md'), 'w') as f:
            f.write('hi')

        state = snapshot([temp_dir, None, os.path.join(temp_dir, 'missing')])

        assert list(state) == [os.path.join(temp_dir, 'post.md')]


class TestChangeWatcher:
    """Test cases for ChangeWatcher."""

    def test_no_change_no_rebuild(self, temp_dir):
        calls = []
        watcher = ChangeWatcher([temp_dir], lambda: calls.append(1))

        assert watcher.check() is False
        assert calls == []

    def test_modified_file_triggers_one_rebuild(self, temp_dir):
        path = os.path.join(temp_dir, 'post.md')
        with open(path, 'w') as f:
            f.write('one')
        calls = []
        watcher = ChangeWatcher([temp_dir], lambda: calls.append(1))

        os.utime(path, (1, 1))

        assert watcher.check() is True
        assert watcher.check() is False
        assert calls == [1]

    def test_new_file_triggers_rebuild(self, temp_dir):
        calls = []
        watcher = ChangeWatcher([temp_dir], lambda: calls.append(1))
        with open(os.path.join(temp_dir, 'new.md'), 'w') as f:
            f.write('new')

        assert watcher.check() is True
        assert calls == [1]

    def test_failed_rebuild_is_logged_not_raised(self, temp_dir, caplog):
        def rebuild():
            raise ValueError("broken post")

        watcher = ChangeWatcher([temp_dir], rebuild)
        with open(os.path.join(temp_dir, 'new.md'), 'w') as f:
            f.write('new')

        assert watcher.check() is True
        assert 'Rebuild failed: broken post' in caplog.text

    def test_stop(self, temp_dir):
        watcher = ChangeWatcher([temp_dir], lambda: None, interval=0.05)
        watcher.start()
        watcher.stop()
        watcher.join(timeout=2)

        assert not watcher.is_alive()


class TestServe:

    def test_missing_directory(self, temp_dir):
        with pytest.raises(FileNotFoundError, match="Output directory not found"):
            serve(os.path.join(temp_dir, 'public'))

    def test_serves_built_files_without_caching(self, temp_dir):
        with open(os.path.join(temp_dir, 'index.html'), 'w') as f:
            f.write('<p>home</p>')
        server = make_server(temp_dir, '127.0.0.1', 0)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        try:
            url = f"http://127.0.0.1:{server.server_address[1]}/"
            with urllib.request.urlopen(url, timeout=5) as response:
                body = response.read().decode('utf-8')
                cache_control = response.headers['Cache-Control']
        finally:
            server.shutdown()
            server.server_close()

        assert body == '<p>home</p>'
        assert cache_control == 'no-store, max-age=0'
