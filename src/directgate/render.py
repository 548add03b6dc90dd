from __future__ import annotations

from html import escape

from .config import DEFAULT_FIELD

_PAGE = """<!DOCTYPE html>
<html lang="{lang}">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<meta name="robots" content="noindex, nofollow">
<title>{title}</title>
<style>
*{{box-sizing:border-box;margin:0;padding:0}}
body{{font-family:Arial,sans-serif;color:#000;line-height:1.6}}
.container{{display:flex;justify-content:center;align-items:center;min-height:100vh;padding:20px}}
.main{{max-width:600px;padding:30px;background:#fff;border-radius:10px;box-shadow:0 .5rem 1rem rgba(0,0,0,.15)}}
p{{font-size:18px;margin-bottom:20px;text-align:center}}
.error{{color:#f33;font-size:16px}}
form{{display:flex;flex-direction:column;gap:20px}}
label{{font-size:18px;margin-bottom:8px;display:block}}
input[type=text]{{padding:15px;font-size:18px;border:2px solid #ddd;border-radius:6px;width:100%}}
button{{background:#337ab7;color:#fff;border:none;padding:15px;font-size:18px;border-radius:6px;cursor:pointer}}
</style>
</head>
<body>
<div class="container">
<div class="main">
<p>{prompt}</p>
{error_block}<form method="POST">
<div>
<label for="{field}">{question_label}</label>
<input type="text" id="{field}" name="{field}" inputmode="numeric" required autocomplete="off">
</div>
<button type="submit">{submit_label}</button>
</form>
</div>
</div>
</body>
</html>
"""


def render_challenge_page(
    question: str,
    error: str | None = None,
    *,
    title: str = "Checking that you are not a robot",
    prompt: str = "Please solve the problem below to continue.",
    field_name: str = DEFAULT_FIELD,
    submit_label: str = "Continue",
    lang: str = "en",
) -> str:
    """Render the challenge HTML page.

    Pure function: no request or session access. ``question`` and ``error``
    are HTML-escaped. The form posts back to the current URL so the gate
    sees the answer on the same path.
    """
    error_block = f'<p class="error">{escape(error)}</p>\n' if error else ""
    return _PAGE.format(
        lang=escape(lang),
        title=escape(title),
        prompt=escape(prompt),
        error_block=error_block,
        field=escape(field_name),
        question_label=f"What is {escape(question)}?",
        submit_label=escape(submit_label),
    )
