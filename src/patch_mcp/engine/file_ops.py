"""File access helpers used by the patch engine.

Path resolution and text I/O all return ``IOResult`` values instead of raising.
The transaction layer turns failures into ``PatchError`` codes.
"""

import shutil
from pathlib import Path

from .io_result import IOResult

TEMP_SUFFIX = ".tmp"


class PathResolver:
    """Path resolution with security validation.

    Guards against:
    - Symlinked patch targets
    - Paths escaping the working directory (when traversal is disallowed)
    - Residual ``..`` components after normalization
    """

    @staticmethod
    def resolve_and_validate(
        path: str,
        working_dir: Path | None = None,
        allow_traversal: bool = True,
    ) -> IOResult[Path]:
        """Resolve and validate a target path.

        Args:
            path: File path to resolve (relative or absolute)
            working_dir: Base directory for relative paths (defaults to cwd)
            allow_traversal: If False, path must stay within working_dir

        Returns:
            IOResult.success(resolved_path) or IOResult.failure(error_message)

        Example:
            result = PathResolver.resolve_and_validate(
                "src/app.py",
                working_dir=Path("/srv/project"),
                allow_traversal=False,
            )
        """
        if not path or not path.strip():
            return IOResult.failure("Empty file path", error_kind="invalid_path")

        if "\x00" in path:
            return IOResult.failure("File path contains a NUL byte", error_kind="invalid_path")

        if working_dir is None:
            working_dir = Path.cwd()

        try:
            file_path = Path(path).expanduser()
            absolute_path = file_path if file_path.is_absolute() else working_dir / file_path

            # Only the target itself is checked; symlinked parents are resolved below
            if absolute_path.is_symlink():
                return IOResult.failure(
                    f"Symlinks not allowed for security: {absolute_path}",
                    error_kind="invalid_path",
                )

            resolved_path = absolute_path.resolve()
        except (OSError, RuntimeError, ValueError) as e:
            return IOResult.failure(f"Failed to resolve path '{path}': {e}", error_kind="invalid_path")

        if not allow_traversal:
            try:
                resolved_path.relative_to(working_dir.resolve())
            except ValueError:
                return IOResult.failure(
                    f"Path escapes working directory. "
                    f"Path: {path}, Resolved: {resolved_path}, Working dir: {working_dir}",
                    error_kind="invalid_path",
                )

        if ".." in resolved_path.parts:
            return IOResult.failure(
                f"Path traversal detected after resolution: {resolved_path}",
                error_kind="invalid_path",
            )

        return IOResult.success(resolved_path)


class FileOperations:
    """Text file operations with error reporting via ``IOResult``.

    Files are read and written with ``newline=""`` so line endings reach the
    normalizer untouched and are written back exactly as produced.
    """

    @staticmethod
    def read_text(
        path: Path,
        encoding: str = "utf-8",
        max_size_bytes: int | None = None,
    ) -> IOResult[str]:
        """Read a text file.

        Args:
            path: File path to read (must exist)
            encoding: Text encoding
            max_size_bytes: Optional size limit (prevents memory exhaustion)

        Returns:
            IOResult.success(content) or IOResult.failure(error_message)
        """
        if not path.exists():
            return IOResult.failure(f"File not found: {path}", error_kind="not_found")

        if not path.is_file():
            return IOResult.failure(f"Path is not a file: {path}", error_kind="invalid_path")

        if max_size_bytes is not None:
            try:
                file_size = path.stat().st_size
            except OSError as e:
                return IOResult.failure(f"Failed to stat file '{path}': {e}")
            if file_size > max_size_bytes:
                return IOResult.failure(
                    f"File too large: {file_size} bytes exceeds limit of {max_size_bytes}",
                    error_kind="too_large",
                )

        try:
            with open(path, encoding=encoding, newline="") as f:
                return IOResult.success(f.read())
        except UnicodeDecodeError as e:
            return IOResult.failure(f"Encoding error reading '{path}' with {encoding}: {e}")
        except PermissionError as e:
            return IOResult.failure(f"Permission denied reading '{path}': {e}", error_kind="permission")
        except OSError as e:
            return IOResult.failure(f"Failed to read file '{path}': {e}")

    @staticmethod
    def write_text(path: Path, content: str, encoding: str = "utf-8") -> IOResult[int]:
        """Write a text file, replacing any existing content.

        Content is encoded up front and written to a sibling temp file that is
        then renamed over ``path``, so a failed write leaves the target intact.

        Returns:
            IOResult.success(bytes_written) or IOResult.failure(error_message)
        """
        try:
            data = content.encode(encoding)
        except UnicodeEncodeError as e:
            return IOResult.failure(f"Encoding error writing '{path}' with {encoding}: {e}")
        except LookupError as e:
            return IOResult.failure(f"Unknown encoding '{encoding}': {e}")

        temp_path = path.with_name(path.name + TEMP_SUFFIX)
        try:
            temp_path.write_bytes(data)
            if path.exists():
                shutil.copymode(path, temp_path)
            temp_path.replace(path)
        except PermissionError as e:
            temp_path.unlink(missing_ok=True)
            return IOResult.failure(f"Permission denied writing '{path}': {e}", error_kind="permission")
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            return IOResult.failure(f"Failed to write file '{path}': {e}")

        return IOResult.success(len(data))

    @staticmethod
    def copy_file(source: Path, destination: Path) -> IOResult[Path]:
        """Copy ``source`` over ``destination`` (overwrite permitted)."""
        if not source.is_file():
            return IOResult.failure(f"Source file not found: {source}", error_kind="not_found")
        try:
            shutil.copyfile(source, destination)
        except PermissionError as e:
            return IOResult.failure(
                f"Permission denied copying '{source}' to '{destination}': {e}",
                error_kind="permission",
            )
        except OSError as e:
            return IOResult.failure(f"Failed to copy '{source}' to '{destination}': {e}")
        return IOResult.success(destination)

    @staticmethod
    def delete_file(path: Path) -> IOResult[bool]:
        """Delete a file. A missing file is not an error (returns False)."""
        try:
            path.unlink()
        except FileNotFoundError:
            return IOResult.success(False)
        except PermissionError as e:
            return IOResult.failure(f"Permission denied deleting '{path}': {e}", error_kind="permission")
        except OSError as e:
            return IOResult.failure(f"Failed to delete file '{path}': {e}")
        return IOResult.success(True)
