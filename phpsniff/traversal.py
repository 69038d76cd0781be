"""
File system traversal: walk directories and collect PHP source files.

This module recursively walks a project to find PHP files (.php) and,
optionally, PHP templates and includes (.phtml, .inc). Dependency, build,
VCS and cache directories are skipped.

Typical usage:
    from pathlib import Path
    from phpsniff.traversal import find_php_files, find_source_files

    # Only .php files
    php_files = find_php_files(Path("./my_project"))

    # .php plus templates/includes
    all_sources = find_source_files(Path("./my_project"), include_templates=True)

    # Custom ignore patterns
    sources = find_source_files(
        Path("./my_project"),
        ignore_dirs={"vendor", "var", "storage"}
    )
"""

import logging
from pathlib import Path
from typing import Callable, Optional, Set

logger = logging.getLogger(__name__)

PHP_EXTENSIONS = frozenset({".php"})
TEMPLATE_EXTENSIONS = frozenset({".phtml", ".inc"})

# Default directories to ignore during traversal
DEFAULT_IGNORE_DIRS: Set[str] = {
    # Composer dependencies and JS packages
    "vendor",
    "node_modules",

    # Framework runtime/cache output
    "var",
    "storage",
    "cache",
    ".cache",
    "build",
    "dist",

    # Version control
    ".git",
    ".svn",
    ".hg",

    # IDE and editor directories
    ".vscode",
    ".idea",

    # Tool caches
    ".phpunit.cache",
    ".php-cs-fixer.cache",
    "__pycache__",
}


def is_php_file(path: Path) -> bool:
    """
    Check if a file is a PHP source file (.php extension, any case).

    Examples:
        >>> is_php_file(Path("index.php"))
        True
        >>> is_php_file(Path("layout.phtml"))
        False
    """
    return path.suffix.lower() in PHP_EXTENSIONS


def is_template_file(path: Path) -> bool:
    """Check if a file is a PHP template or include (.phtml / .inc)."""
    return path.suffix.lower() in TEMPLATE_EXTENSIONS


def is_source_file(path: Path, include_templates: bool = False) -> bool:
    """
    Check if a file should be analysed.

    Examples:
        >>> is_source_file(Path("index.php"))
        True
        >>> is_source_file(Path("layout.phtml"), include_templates=True)
        True
    """
    if is_php_file(path):
        return True
    return include_templates and is_template_file(path)


def should_ignore_directory(dir_path: Path, ignore_dirs: Set[str]) -> bool:
    """Check (by directory name only, case-sensitive) whether to skip a directory."""
    return dir_path.name in ignore_dirs


def find_source_files(
    root: Path,
    include_templates: bool = False,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
    filter_fn: Optional[Callable[[Path], bool]] = None,
) -> list[Path]:
    """
    Recursively find all PHP source files in a directory tree.

    Args:
        root: Root directory to start traversal from.
        include_templates: If True, also collect .phtml and .inc files.
        ignore_dirs: Set of directory names to skip. If None, uses DEFAULT_IGNORE_DIRS.
        follow_symlinks: If True, follow symbolic links during traversal.
        filter_fn: Optional additional filter; only files for which it returns
                   True are included.

    Returns:
        Sorted list of matching files.

    Raises:
        FileNotFoundError: If the root directory does not exist.
        NotADirectoryError: If root is not a directory.

    Notes:
        Permission errors on subdirectories are logged and traversal continues.
    """
    if ignore_dirs is None:
        ignore_dirs = DEFAULT_IGNORE_DIRS

    root = root.resolve()

    if not root.exists():
        logger.error("Root directory does not exist: %s", root)
        raise FileNotFoundError(f"Root directory does not exist: {root}")

    if not root.is_dir():
        logger.error("Root path is not a directory: %s", root)
        raise NotADirectoryError(f"Root path is not a directory: {root}")

    logger.info("Starting traversal from: %s", root)
    logger.debug(
        "Traversal config: include_templates=%s, follow_symlinks=%s, ignore_dirs=%s",
        include_templates,
        follow_symlinks,
        ignore_dirs,
    )

    collected_files: list[Path] = []

    def _walk_directory(current_dir: Path) -> None:
        try:
            for entry in current_dir.iterdir():
                if entry.is_symlink() and not follow_symlinks:
                    logger.debug("Skipping symlink: %s", entry)
                    continue

                if entry.is_dir():
                    if should_ignore_directory(entry, ignore_dirs):
                        logger.debug("Ignoring directory: %s", entry)
                        continue
                    _walk_directory(entry)

                elif entry.is_file() and is_source_file(entry, include_templates=include_templates):
                    if filter_fn is not None and not filter_fn(entry):
                        logger.debug("Filtered out by custom filter: %s", entry)
                        continue
                    collected_files.append(entry)

        except PermissionError as e:
            logger.warning("Permission denied accessing directory %s: %s", current_dir, e)
        except OSError as e:
            logger.warning("Error accessing directory %s: %s", current_dir, e)

    _walk_directory(root)
    collected_files.sort()

    logger.info(
        "Traversal complete: found %d source file(s) in %s",
        len(collected_files),
        root,
    )
    return collected_files


def find_php_files(
    root: Path,
    ignore_dirs: Optional[Set[str]] = None,
    follow_symlinks: bool = False,
) -> list[Path]:
    """Recursively find all .php files in a directory tree, sorted by path."""
    return find_source_files(
        root=root,
        include_templates=False,
        ignore_dirs=ignore_dirs,
        follow_symlinks=follow_symlinks,
    )
