"""
Markdown to Confluence storage format.

A fixed, ordered list of regex substitutions followed by paragraph
wrapping. The conversion is lossy and non-recursive: nested lists, tables
and emphasis inside code are not handled. Rule order matters (bold must
run before italic, headers before everything else).
"""

import re
from html import escape

CODE_MACRO = (
    '<ac:structured-macro ac:name="code">'
    r'<ac:parameter ac:name="language">\1</ac:parameter>'
    r'<ac:plain-text-body><![CDATA[\2]]></ac:plain-text-body>'
    '</ac:structured-macro>'
)

# (name, pattern, replacement)
STORAGE_RULES = [
    ("h3", re.compile(r"^### (.*)$", re.M), r"<h3>\1</h3>"),
    ("h2", re.compile(r"^## (.*)$", re.M), r"<h2>\1</h2>"),
    ("h1", re.compile(r"^# (.*)$", re.M), r"<h1>\1</h1>"),
    ("bold", re.compile(r"\*\*(.*?)\*\*"), r"<strong>\1</strong>"),
    ("italic", re.compile(r"\*(.*?)\*"), r"<em>\1</em>"),
    ("code_block", re.compile(r"```(\w+)?\n(.*?)```", re.S), CODE_MACRO),
    ("inline_code", re.compile(r"`(.*?)`"), r"<code>\1</code>"),
    ("list_item", re.compile(r"^[*-] (.*)$", re.M), r"<li>\1</li>"),
    ("list", re.compile(r"(?:<li>.*</li>\n?)+"), r"<ul>\g<0></ul>"),
    ("link", re.compile(r"\[([^\]]+)\]\(([^)]+)\)"), r'<a href="\2">\1</a>'),
]

BLOCK_START = re.compile(r"^<(h[1-6]|ul|ol|ac:|p)")


def _wrap_paragraphs(html: str) -> str:
    blocks = []
    for block in html.split("\n\n"):
        if not block.strip():
            continue
        blocks.append(block if BLOCK_START.match(block) else f"<p>{block}</p>")
    return "\n".join(blocks)


def markdown_to_storage(markdown: str) -> str:
    """Convert simple markdown to Confluence storage format."""
    html = markdown
    for _name, pattern, replacement in STORAGE_RULES:
        html = pattern.sub(replacement, html)
    return _wrap_paragraphs(html)


def text_to_storage(text: str) -> str:
    """Escape plain text and wrap it in paragraphs, keeping line breaks."""
    escaped = escape(text, quote=True).replace("&#x27;", "&#39;")
    paragraphs = [p.replace("\n", "<br/>") for p in escaped.split("\n\n")]
    return "".join(f"<p>{p}</p>" for p in paragraphs)
