import os
import logging
import mistune
from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)

from .i18n import language_name, locale_index_path
from .navigation import sort_by_date

PACKAGE_TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')


class PageRenderer:
    """Renders routes from a RouteTable into HTML files."""

    def __init__(self, templates_dir, output_dir, route_table, settings):
        self.templates_dir = templates_dir
        self.output_dir = output_dir
        self.route_table = route_table
        self.settings = settings
        self.default_locale = settings['default_locale']
        self.logger = logging.getLogger('Disenchanted.render')

        loaders = []
        if templates_dir and os.path.isdir(templates_dir):
            loaders.append(FileSystemLoader(templates_dir))
        loaders.append(FileSystemLoader(PACKAGE_TEMPLATES_DIR))
        self.env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=select_autoescape(['html']),
        )
        self.env.filters['format_date'] = self.format_date
        self.env.filters['language_name'] = language_name
        self.markdown_parser = self.create_markdown_parser()

        self._original_paths = {}
        self._translated_paths = {}
        groups = route_table.groups
        for post in groups.default_language_posts:
            if post.translation_group and post.translation_group not in self._original_paths:
                self._original_paths[post.translation_group] = post.slug
        for post in groups.other_language_posts:
            if post.translation_group:
                self._translated_paths.setdefault((post.translation_group, post.language_tag), post.slug)

    def create_markdown_parser(self):
        """Create a Mistune markdown parser with a custom renderer."""
        class CustomRenderer(mistune.HTMLRenderer):
            def __init__(self):
                super().__init__(escape=False)

            def block_code(self, code, info=None):
                escaped_code = mistune.escape(code)
                lang = info.split()[0] if info else ''
                css_class = f' class="language-{mistune.escape(lang)}"' if lang else ''
                return '<pre style="white-space: pre-wrap;"><code{}>{}</code></pre>\n'.format(css_class, escaped_code)
        return mistune.create_markdown(
            renderer=CustomRenderer(),
            plugins=['table', 'task_lists', 'strikethrough']
        )

    def markdown_filter(self, text):
        """Convert markdown text to HTML."""
        return self.markdown_parser(text)

    @staticmethod
    def format_date(value):
        """Format a post date for display."""
        return value.strftime('%B %d, %Y')

    def calculate_relative_path(self, current_output_dir):
        """Calculate relative path from current directory to root."""
        rel_path = os.path.relpath(self.output_dir, current_output_dir)
        # Ensure relative path ends with '/' for proper asset linking
        if rel_path == '.':
            return ''
        else:
            return rel_path + '/'

    def output_dir_for(self, route_path):
        route_dir = os.path.join(self.output_dir, *[part for part in route_path.split('/') if part])
        # Verify the final path is within output_dir
        output_root = os.path.abspath(self.output_dir)
        if os.path.commonpath([output_root, os.path.abspath(route_dir)]) != output_root:
            raise ValueError(f"Path traversal attempt detected: {route_path}")
        return route_dir

    def base_context(self, lang_key):
        return {
            'site_title': self.settings.get('site_title'),
            'site_description': self.settings.get('site_description'),
            'site_url': self.settings.get('site_url'),
            'author': self.settings.get('author'),
            'lang': lang_key,
            'home_path': locale_index_path(lang_key, self.default_locale),
            'offline': self.settings.get('offline', True),
            'locales': [
                {'lang': lang, 'name': language_name(lang),
                 'path': locale_index_path(lang, self.default_locale)}
                for lang in self.settings['locales']
            ],
        }

    def index_posts(self, lang_key):
        groups = self.route_table.groups
        if lang_key == self.default_locale:
            posts = groups.default_language_posts
        else:
            posts = [p for p in groups.other_language_posts if p.language_tag == lang_key]
        return sort_by_date(p for p in posts if not p.draft)

    def translation_context(self, route):
        """Translation panel data, resolved from the route table rather than the URL."""
        post = route.post
        if 'translations' in route.context:
            return {
                'translation_links': [
                    {
                        'lang': lang,
                        'name': language_name(lang),
                        'path': self._translated_paths.get((post.translation_group, lang)),
                    }
                    for lang in route.context['translations']
                ],
            }
        return {
            'original_path': self._original_paths.get(post.translation_group,
                                                      locale_index_path(self.default_locale, self.default_locale)),
            'locale_index': locale_index_path(post.language_tag, self.default_locale),
        }

    def render_route(self, route):
        """Render one route to an HTML string."""
        lang_key = route.context['lang_key']
        context = self.base_context(lang_key)
        context.update(route.context)
        context['relative_path'] = self.calculate_relative_path(self.output_dir_for(route.path))

        if route.post is None:
            context['posts'] = self.index_posts(lang_key)
            context['title'] = self.settings.get('site_title')
        else:
            post = route.post
            context.update(self.translation_context(route))
            context['post'] = post
            context['title'] = post.title
            context['content'] = self.markdown_filter(post.body)

        try:
            template = self.env.get_template(route.template)
            return template.render(**context)
        except (TemplateNotFound, TemplateSyntaxError) as e:
            self.logger.error(f"Template error for {route.path}: {e}")
            raise

    def write_route(self, route):
        """Render a route and write it to <output>/<path>/index.html."""
        html = self.render_route(route)
        route_dir = self.output_dir_for(route.path)
        os.makedirs(route_dir, exist_ok=True)
        output_file_path = os.path.join(route_dir, 'index.html')
        with open(output_file_path, 'w', encoding='utf-8') as output_file:
            output_file.write(html)
        self.logger.debug(f"Generated HTML: {output_file_path}")
        return output_file_path

    def write_404_page(self):
        context = self.base_context(self.default_locale)
        context['title'] = '404: Not Found'
        context['relative_path'] = ''
        html = self.env.get_template('404.html').render(**context)
        output_file = os.path.join(self.output_dir, '404.html')
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(html)
        return output_file
