from pathlib import Path

from finworker.categorization.exceptions import CategorizationError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(path: Path | None = None) -> str:
    """Load the categorization prompt template.

    Raises:
        CategorizationError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "categorization_prompt.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CategorizationError(f"Failed to load prompt template: {exc}") from exc


def load_json_schema(path: Path | None = None) -> str:
    """Load the response JSON schema.

    Raises:
        CategorizationError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "categorization_schema.json"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CategorizationError(f"Failed to load JSON schema: {exc}") from exc
