#!/usr/bin/env python
"""
Render article bodies from disk and print one JSON object per article.

Usage:
    .venv/bin/python scripts/render_pages.py <file> [<file> ...] [options]
    .venv/bin/python scripts/render_pages.py --xml <export.xml> [options]

Options:
    --xml PATH        Read pages from a MediaWiki XML export instead of files
    --limit N         Only render the first N pages
    --detect-only     Print the detected format and scores, skip rendering
    --out-dir DIR     Also write each rendered body to DIR/<name>.html

Each output line is {"name", "format", "categories", "footnotes", "html"}
(or {"name", "format", "scores"} with --detect-only).

Example:
    .venv/bin/python scripts/render_pages.py article.txt
    .venv/bin/python scripts/render_pages.py --xml ~/export.xml --limit 20 --detect-only
"""

from __future__ import annotations

import argparse
import json
import re
import sys
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Iterator, Optional

# Ensure the wikimark package is importable when run from project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from wikimark.services.detector import classify, score
from wikimark.services.renderer import render


# ── Input sources ─────────────────────────────────────────────────────────────

def _local(tag: str) -> str:
    # Export schema versions differ only in the namespace URI.
    return tag.rsplit("}", 1)[-1]


def iter_export(xml_path: Path) -> Iterator[tuple[str, str]]:
    """Yield (title, latest revision text) for every page in a MediaWiki export."""
    # Use iterparse to handle large exports without loading the whole file into memory
    for _event, elem in ET.iterparse(str(xml_path), events=("end",)):
        if _local(elem.tag) != "page":
            continue
        title = ""
        text = ""
        for child in elem.iter():
            name = _local(child.tag)
            if name == "title":
                title = (child.text or "").strip()
            elif name == "text":
                text = child.text or ""      # last <text> wins: latest revision
        if title:
            yield title, text
        elem.clear()


def iter_files(paths: list[str]) -> Iterator[tuple[str, str]]:
    for raw in paths:
        path = Path(raw).expanduser()
        try:
            yield path.stem, path.read_text(encoding="utf-8")
        except OSError as exc:
            print(f"  [!] Cannot read {path}: {exc}", file=sys.stderr)
            raise SystemExit(1) from exc


def _safe_name(name: str) -> str:
    return re.sub(r"[^\w.-]+", "_", name).strip("_") or "page"


# ── Rendering ─────────────────────────────────────────────────────────────────

def run(
    pages: Iterator[tuple[str, str]],
    limit: Optional[int],
    detect_only: bool,
    out_dir: Optional[Path],
) -> int:
    count = 0
    for name, content in pages:
        if limit is not None and count >= limit:
            break
        count += 1

        if detect_only:
            record = {
                "name": name,
                "format": classify(content).value,
                "scores": score(content).model_dump(),
            }
        else:
            result = render(content)
            record = {"name": name, **result.model_dump(mode="json")}
            if out_dir is not None:
                (out_dir / f"{_safe_name(name)}.html").write_text(result.html, encoding="utf-8")

        print(json.dumps(record, ensure_ascii=False))
    return count


# ── CLI ───────────────────────────────────────────────────────────────────────

def main() -> None:
    parser = argparse.ArgumentParser(
        description="Render MediaWiki / NamuMark article bodies to HTML.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("files", nargs="*", help="Article body files (UTF-8)")
    parser.add_argument("--xml", default=None, metavar="PATH",
                        help="Read pages from a MediaWiki XML export")
    parser.add_argument("--limit", type=int, default=None, metavar="N",
                        help="Only render the first N pages")
    parser.add_argument("--detect-only", action="store_true",
                        help="Print detected format and scores only")
    parser.add_argument("--out-dir", default=None, metavar="DIR",
                        help="Also write rendered HTML files here")
    args = parser.parse_args()

    if not args.files and not args.xml:
        parser.error("give at least one file or --xml PATH")

    if args.xml:
        xml_path = Path(args.xml).expanduser().resolve()
        if not xml_path.exists():
            print(f"Error: file not found: {xml_path}", file=sys.stderr)
            sys.exit(1)
        pages = iter_export(xml_path)
    else:
        pages = iter_files(args.files)

    out_dir = None
    if args.out_dir:
        out_dir = Path(args.out_dir).expanduser()
        out_dir.mkdir(parents=True, exist_ok=True)

    count = run(pages, args.limit, args.detect_only, out_dir)
    print(f"Rendered {count} page(s).", file=sys.stderr)


if __name__ == "__main__":
    main()
