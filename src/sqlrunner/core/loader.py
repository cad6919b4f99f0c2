"""
Script loading - resolves script identifiers to SQL text.

An identifier is either a filesystem path (relative paths resolve against the
configured scripts directory) or a package resource written as
``package.name:path/inside/package.sql``.
"""

import logging
import re
from importlib import resources
from pathlib import Path

from sqlrunner.domain.errors import ScriptLoadError

LOG = logging.getLogger(__name__)

_RESOURCE_PATTERN = re.compile(
    r"^(?P<package>[A-Za-z_][\w]*(?:\.[A-Za-z_][\w]*)*):(?P<resource>[^:]+)$"
)


class ScriptLoader:
    """Read SQL scripts from files or package resources.

    Attributes:
        base_dir: Directory relative paths are resolved against (default: current directory)
        encoding: Text encoding of script files
    """

    def __init__(self, base_dir: Path | None = None, encoding: str = "utf-8") -> None:
        self.base_dir = base_dir
        self.encoding = encoding

    def load(self, identifier: str | Path) -> str:
        """Return the text of the script named by ``identifier``.

        Raises:
            ScriptLoadError: If the script does not exist or cannot be decoded
        """
        if isinstance(identifier, str):
            match = _RESOURCE_PATTERN.match(identifier)
            # Single letters are Windows drive prefixes, not packages
            if match and len(match.group("package")) > 1:
                return self._load_resource(match.group("package"), match.group("resource"))
        return self._load_file(Path(identifier))

    def resolve(self, path: Path) -> Path:
        """Resolve a script path against ``base_dir``."""
        if path.is_absolute() or self.base_dir is None:
            return path
        return self.base_dir / path

    def _load_file(self, path: Path) -> str:
        resolved = self.resolve(path)
        LOG.debug(f"Loading SQL script from {resolved}")
        try:
            return resolved.read_text(encoding=self.encoding)
        except FileNotFoundError as e:
            raise ScriptLoadError(
                message=f"SQL script not found: {resolved}", code="script_not_found"
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise ScriptLoadError(
                message=f"An error occurred while reading the SQL script {resolved}: {e}",
                code="script_unreadable",
            ) from e

    def _load_resource(self, package: str, resource: str) -> str:
        LOG.debug(f"Loading SQL script resource {resource} from package {package}")
        try:
            return resources.files(package).joinpath(resource).read_text(encoding=self.encoding)
        except (ModuleNotFoundError, FileNotFoundError, TypeError) as e:
            raise ScriptLoadError(
                message=f"SQL script resource not found: {package}:{resource}",
                code="script_not_found",
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            raise ScriptLoadError(
                message=f"An error occurred while reading the SQL script {package}:{resource}: {e}",
                code="script_unreadable",
            ) from e
