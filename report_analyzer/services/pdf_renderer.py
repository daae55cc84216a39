"""Markdown -> HTML -> PDF rendering through an external headless browser."""
from __future__ import annotations

import html
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path

import markdown

from report_analyzer import config

logger = logging.getLogger("claude_report.pdf")

_STYLE = """
body {
  font-family: 'Pretendard', -apple-system, BlinkMacSystemFont, system-ui, sans-serif;
  line-height: 1.6;
  color: #333;
  max-width: 210mm;
  margin: 0 auto;
  padding: 20mm;
}
h1 { font-size: 28px; border-bottom: 3px solid #3b82f6; padding-bottom: 10px; }
h2 { font-size: 22px; margin-top: 30px; color: #2563eb; }
h3 { font-size: 18px; margin-top: 20px; color: #1e40af; }
code { background: #f3f4f6; padding: 2px 6px; border-radius: 3px; font-family: 'Courier New', monospace; }
pre { background: #1f2937; color: #f9fafb; padding: 15px; border-radius: 8px; }
pre code { background: none; color: inherit; padding: 0; }
hr { border: none; border-top: 1px solid #e5e7eb; margin: 30px 0; }
"""


class PdfRenderError(RuntimeError):
    """Raised when the external renderer cannot produce a PDF."""


def markdown_to_html(text: str, title: str = "Claude Report Analyzer") -> str:
    body = markdown.markdown(text, extensions=["fenced_code", "tables"])
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="UTF-8">\n'
        f"<title>{html.escape(title)}</title>\n<style>{_STYLE}</style>\n"
        f"</head>\n<body>\n{body}\n</body>\n</html>\n"
    )


def _resolve_browser(browser: str) -> str:
    resolved = shutil.which(browser)
    if not resolved:
        raise PdfRenderError(f"PDF renderer not found: {browser}")
    return resolved


def render_pdf(markdown_text: str, pdf_path: Path, browser: str | None = None, timeout: int | None = None) -> Path:
    """Print the Markdown document to ``pdf_path`` with a headless browser."""
    executable = _resolve_browser(browser or config.PDF_BROWSER)
    pdf_path = Path(pdf_path).resolve()

    with tempfile.TemporaryDirectory(prefix="claude-report-") as tmpdir:
        html_path = Path(tmpdir) / "report.html"
        html_path.write_text(markdown_to_html(markdown_text), encoding="utf-8", errors="backslashreplace")
        cmd = [
            executable,
            "--headless",
            "--disable-gpu",
            "--no-sandbox",
            "--no-pdf-header-footer",
            f"--print-to-pdf={pdf_path}",
            html_path.as_uri(),
        ]
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout or config.PDF_TIMEOUT_SECONDS,
            )
        except (subprocess.SubprocessError, OSError) as exc:
            raise PdfRenderError(f"PDF renderer failed: {exc}") from exc

    if result.returncode != 0 or not pdf_path.exists():
        detail = (result.stderr or "").strip()[:200]
        raise PdfRenderError(f"PDF renderer exited with {result.returncode}: {detail}")

    logger.info(f"PDF written to {pdf_path}")
    return pdf_path
