import markdown
from markupsafe import Markup

EXTENSIONS = ['fenced_code', 'tables', 'sane_lists']


def build_renderer() -> markdown.Markdown:
    """
    Markdown converter with raw HTML support switched off.

    Without the block and inline HTML handlers, tags in the summary are
    treated as text and escaped on output, while code and autolinks keep
    working.
    """
    md = markdown.Markdown(extensions=EXTENSIONS)
    md.preprocessors.deregister('html_block')
    md.inlinePatterns.deregister('html')
    return md


def render_summary(text: str) -> Markup:
    """Render summary markdown to HTML for the summary page."""
    if not text:
        return Markup('')
    return Markup(build_renderer().convert(text))
