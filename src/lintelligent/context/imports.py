"""Import discovery and path resolution for JavaScript/TypeScript sources.

This is a line-oriented heuristic, not a parser. Known limitations: bundler
aliases, monorepo workspaces and directory index files (``./dir`` ->
``./dir/index.ts``) are not resolved; only the extension probing below is.
"""

import re

IMPORT_FROM_PATTERN = re.compile(r"""import\s+.*?\s+from\s+["']([^"']+)["']""")
REQUIRE_PATTERN = re.compile(r"""require\(["']([^"']+)["']\)""")
SOURCE_EXTENSION_PATTERN = re.compile(r"\.(js|jsx|ts|tsx)$", re.IGNORECASE)

# Tried in order when an import has no recognised extension.
IMPORT_EXTENSIONS = ["", ".ts", ".tsx", ".js", ".jsx"]

# Root that bare specifiers ("lodash", "utils/date") resolve under.
BARE_IMPORT_ROOT = "src"


def parse_imports(content: str) -> list[str]:
    """Return raw import specifiers in source order.

    Each line contributes at most one ``import ... from "x"`` and one
    ``require("x")`` match.
    """
    imports: list[str] = []
    for line in content.split("\n"):
        match = IMPORT_FROM_PATTERN.search(line)
        if match:
            imports.append(match.group(1))
        match = REQUIRE_PATTERN.search(line)
        if match:
            imports.append(match.group(1))
    return imports


def _normalize(segments: list[str]) -> str:
    stack: list[str] = []
    for segment in segments:
        if not segment or segment == ".":
            continue
        if segment == "..":
            if stack:
                stack.pop()
            continue
        stack.append(segment)
    return "/".join(stack)


def resolve_import_candidates(import_path: str, current_file_path: str) -> list[str]:
    """Resolve an import specifier to candidate repository paths, in lookup order.

    - bare specifiers resolve under ``src/``
    - ``/``-prefixed specifiers resolve from the repository root
    - ``./`` and ``../`` specifiers resolve against the importing file's directory

    Args:
        import_path: Specifier as written in the source
        current_file_path: Repository path of the importing file

    Returns:
        Candidate paths; a single path if the specifier already has a source extension
    """
    is_relative = import_path.startswith("./") or import_path.startswith("../")
    is_absolute = import_path.startswith("/")

    if is_relative:
        current_dir = current_file_path.split("/")[:-1]
        normalized = _normalize(current_dir + import_path.split("/"))
    elif is_absolute:
        normalized = _normalize(import_path.split("/"))
    else:
        normalized = _normalize([BARE_IMPORT_ROOT, *import_path.split("/")])

    if SOURCE_EXTENSION_PATTERN.search(normalized):
        return [normalized]

    candidates: list[str] = []
    for ext in IMPORT_EXTENSIONS:
        candidate = f"{normalized}{ext}"
        if candidate and candidate not in candidates:
            candidates.append(candidate)
    return candidates
