#!/usr/bin/env python
"""
Write the Pygments stylesheet for highlighted code blocks.

The compiler emits ``<div class="highlight">`` inside ``.wiki-codeblock``;
the page layer serves the CSS this script generates.

Usage:
    .venv/bin/python scripts/gen_pygments_css.py [--style friendly] [--out pygments.css]
"""

from __future__ import annotations

import argparse
from pathlib import Path

from pygments.formatters import HtmlFormatter
from pygments.styles import get_all_styles


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__,
                                     formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--style", default="friendly", choices=sorted(get_all_styles()))
    parser.add_argument("--out", default="pygments.css", metavar="PATH")
    args = parser.parse_args()

    css = HtmlFormatter(style=args.style).get_style_defs(".wiki-codeblock .highlight")
    out = Path(args.out)
    out.write_text(css, encoding="utf-8")
    print(f"Written {out}")


if __name__ == "__main__":
    main()
