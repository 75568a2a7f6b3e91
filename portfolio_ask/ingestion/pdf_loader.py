from pathlib import Path
from typing import Optional
from langchain_community.document_loaders import PyMuPDFLoader
from portfolio_ask.exceptions import DocumentLoadError
from portfolio_ask.logging_config import get_logger

log = get_logger(__name__)


def resolve_asset_path(path: str, base_dir: Path) -> Optional[Path]:
    """
    Map a content asset reference to a local file.

    Site-relative paths (``/thesis.pdf``) are looked up under ``base_dir``.
    Remote URLs are not fetched.
    """
    if path.startswith(("http://", "https://")):
        log.info("asset_remote_skipped", path=path)
        return None
    candidate = Path(path)
    if not candidate.is_absolute() or not candidate.exists():
        candidate = base_dir / path.lstrip("/")
    return candidate


def load_pdf_text(file_path: Path) -> str:
    """
    Extract the text of a PDF, pages joined by blank lines.

    Raises:
        DocumentLoadError: missing file or unreadable PDF
    """
    if not file_path.exists():
        raise DocumentLoadError(f"PDF not found: {file_path}")
    try:
        loader = PyMuPDFLoader(str(file_path))
        pages = loader.load()
    except Exception as e:
        raise DocumentLoadError(f"Failed to load {file_path}: {e}") from e

    text = "\n\n".join(page.page_content.strip() for page in pages if page.page_content.strip())
    log.info("pdf_loaded", file_name=file_path.name, pages=len(pages), chars=len(text))
    return text
