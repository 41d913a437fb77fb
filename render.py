"""HTML fragments for the streamed lookup page.

The page is written top to bottom as the lookup progresses. Every chunk is
followed by a `...` placeholder; the stylesheet only shows a placeholder
while it is the last element of the result, so the ellipsis always trails
the text received so far and disappears once the terminator is written.
"""
from html import escape
from typing import Optional

from models import SITE_TITLE, SEARCH_PLACEHOLDER

ZERO_WIDTH_SPACE = "\u200b"

ELLIPSIS = '<p class="pending">...</p>'


def page_head() -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{escape(SITE_TITLE)}</title>
<link rel="stylesheet" href="/static/style.css">
<script src="/static/pronounce.js" defer></script>
</head>
<body>
<div class="page">
<div class="column">
<h1>{escape(SITE_TITLE)}</h1>
{search_bar()}
"""


def search_bar() -> str:
    return f"""<form action="/" class="search">
<input autofocus type="text" name="query" placeholder="{escape(SEARCH_PLACEHOLDER)}">
</form>"""


def page_tail() -> str:
    return "\n</div>\n</div>\n</body>\n</html>\n"


def result_open(query: str) -> str:
    q = escape(query)
    return f"""<div class="card">
<div class="card-header">
<h2>{q}</h2>
<button type="button" class="pronounce" data-word="{q}" aria-label="Pronounce {q}">&#128264;</button>
</div>
<div class="result">"""


def filler(count: int) -> str:
    """Invisible padding that pushes the response past a client's render buffer."""
    if count <= 0:
        return ""
    return ZERO_WIDTH_SPACE * count


def chunk_fragment(text: str) -> str:
    return f'<span class="chunk">{escape(text)}</span>{ELLIPSIS}'


def result_error(message: str = "Something went wrong.") -> str:
    return f'<p class="error">{escape(message)}</p>'


def result_close(pinyin: Optional[str] = None) -> str:
    parts = ['<span class="done"></span></div>']
    if pinyin:
        parts.append(f'<p class="pinyin">{escape(pinyin)}</p>')
    parts.append("</div>")
    return "".join(parts)
