import os
import jinja2

template_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', 'templates')
template_loader = jinja2.FileSystemLoader(searchpath=template_dir)
template_env = jinja2.Environment(loader=template_loader, trim_blocks=True, lstrip_blocks=True)

def render_report(template_name: str, **context) -> str:
    """Renders one of the plain-text run summaries in templates/."""
    return template_env.get_template(template_name).render(**context)
