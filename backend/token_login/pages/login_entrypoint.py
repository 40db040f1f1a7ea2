"""Confirmation page shown for GET requests to a login link.

Link scanners and mail-client prefetchers issue GETs. The page asks the
visitor to press a button, which POSTs back to the same URL and only then
consumes the token.
"""

from jinja2 import BaseLoader, Environment, select_autoescape

# Number of token characters used to derive the form id
FORM_ID_PREFIX_LENGTH = 4

env = Environment(loader=BaseLoader(), autoescape=select_autoescape(["html", "xml"]))

LOGIN_ENTRYPOINT_TEMPLATE = r"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <meta name="robots" content="noindex, nofollow">
    <title>{{ login_label }}</title>
</head>
<body>
    <form id="{{ form_id }}" action="{{ form_action }}" method="post">
        <button type="submit">{{ login_label }}</button>
    </form>
</body>
</html>
"""

_template = env.from_string(LOGIN_ENTRYPOINT_TEMPLATE)


def login_form_id(token: str) -> str:
    """DOM id for the confirmation form of a token."""
    return f"login{token[:FORM_ID_PREFIX_LENGTH]}"


def render_login_entrypoint(*, login_label: str, form_id: str, form_action: str) -> str:
    """Return HTML for the login confirmation form."""
    return _template.render(
        login_label=login_label,
        form_id=form_id,
        form_action=form_action,
    )
