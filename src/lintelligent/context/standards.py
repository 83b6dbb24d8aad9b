"""Coding-standards and security-rules catalogues served to the review prompt."""

from dataclasses import asdict, dataclass

DEFAULT_LANGUAGE = "javascript"


@dataclass(frozen=True)
class Rule:
    """One standards or security rule."""

    id: str
    title: str
    description: str
    severity: str  # low|medium|high

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


CODING_STANDARDS: dict[str, list[Rule]] = {
    "javascript": [
        Rule("js-no-var", "Use const/let", "Declare variables with const or let instead of var", "high"),
        Rule("js-errors", "Handle errors", "Wrap awaited calls that can reject in try/catch", "high"),
        Rule("js-strict-equality", "Strict equality", "Use === and !== instead of == and !=", "high"),
        Rule("js-async-await", "Prefer async/await", "Use async/await instead of promise.then() chains", "medium"),
        Rule("js-early-return", "Early returns", "Return early to avoid nesting deeper than three levels", "medium"),
        Rule("js-template-literals", "Template literals", "Use template literals instead of string concatenation", "low"),
        Rule("js-destructuring", "Destructuring", "Use destructuring for object and array access", "low"),
        Rule("js-naming", "Meaningful names", "Use descriptive variable and function names", "low"),
    ],
    "typescript": [
        Rule("ts-no-any", "Avoid any", "Do not use the any type; prefer unknown with narrowing", "high"),
        Rule("ts-strict", "Strict mode", "Enable strict type checking in tsconfig", "high"),
        Rule("ts-return-types", "Matching return types", "Returned values must match the declared return type", "high"),
        Rule("ts-interfaces", "Interfaces for shapes", "Define interfaces or types for object shapes", "medium"),
        Rule("ts-optional-chaining", "Optional chaining", "Use ?. and ?? instead of manual null checks", "medium"),
        Rule("ts-readonly", "Readonly data", "Mark immutable data readonly", "low"),
        Rule("ts-unions", "Union types", "Use union types for values with several shapes", "low"),
    ],
    "python": [
        Rule("py-no-bare-except", "No bare except", "Catch specific exceptions instead of bare except", "high"),
        Rule("py-mutable-defaults", "No mutable defaults", "Do not use mutable objects as default arguments", "high"),
        Rule("py-context-managers", "Context managers", "Open files and connections with a with statement", "high"),
        Rule("py-type-hints", "Type hints", "Annotate public function signatures", "medium"),
        Rule("py-fstrings", "f-strings", "Prefer f-strings to % formatting and str.format", "low"),
        Rule("py-naming", "PEP 8 naming", "Use snake_case for functions and variables", "low"),
    ],
}

SECURITY_RULES: dict[str, list[Rule]] = {
    "javascript": [
        Rule("js-no-eval", "No eval", "Never use eval() or the Function() constructor", "high"),
        Rule("js-sanitize-input", "Sanitize input", "Sanitize user input before using it", "high"),
        Rule("js-parameterized-queries", "Parameterized queries", "Use parameterized queries to prevent SQL injection", "high"),
        Rule("js-no-innerhtml", "No innerHTML", "Avoid innerHTML with user-controlled data", "high"),
        Rule("js-no-localstorage-secrets", "No secrets in localStorage", "Never store tokens or sensitive data in localStorage", "medium"),
        Rule("js-https", "HTTPS only", "Use HTTPS for all external requests", "medium"),
        Rule("js-error-exposure", "Hide stack traces", "Do not expose stack traces in error responses", "medium"),
        Rule("js-rate-limit", "Rate limiting", "Rate limit public API endpoints", "low"),
    ],
    "typescript": [
        Rule("ts-validate-external", "Validate external data", "Validate API responses and user input at runtime", "high"),
        Rule("ts-no-as-any", "No as any", "Never bypass the type system with 'as any' on untrusted data", "high"),
        Rule("ts-env-validation", "Validate environment", "Validate environment variables at startup", "high"),
        Rule("ts-branded-secrets", "Branded secrets", "Use branded types for sensitive values", "medium"),
        Rule("ts-exhaustive", "Exhaustive checks", "Use exhaustive checks on discriminated unions", "low"),
    ],
    "python": [
        Rule("py-no-eval", "No eval/exec", "Never call eval() or exec() on user input", "high"),
        Rule("py-sql-params", "Parameterized queries", "Pass query parameters separately instead of formatting SQL", "high"),
        Rule("py-subprocess-shell", "No shell=True", "Do not pass user input to subprocess with shell=True", "high"),
        Rule("py-safe-yaml", "Safe YAML", "Use yaml.safe_load instead of yaml.load", "medium"),
        Rule("py-secrets", "Secrets module", "Use the secrets module for tokens, not random", "medium"),
    ],
}


def _rules_for(catalogue: dict[str, list[Rule]], language: str, severity: str | None) -> list[Rule]:
    rules = catalogue.get((language or "").lower(), catalogue[DEFAULT_LANGUAGE])
    if severity:
        rules = [r for r in rules if r.severity == severity]
    return rules


def get_coding_standards(language: str = DEFAULT_LANGUAGE, severity: str | None = None) -> dict:
    """Coding standards for a language, optionally filtered by severity.

    Unknown languages fall back to the javascript catalogue.
    """
    return {
        "language": language,
        "source": "Lintelligent coding standards database",
        "rules": [r.to_dict() for r in _rules_for(CODING_STANDARDS, language, severity)],
    }


def get_security_rules(language: str = DEFAULT_LANGUAGE, severity: str | None = None) -> dict:
    """Security rules for a language, optionally filtered by severity."""
    return {
        "language": language,
        "category": "security",
        "rules": [r.to_dict() for r in _rules_for(SECURITY_RULES, language, severity)],
    }
