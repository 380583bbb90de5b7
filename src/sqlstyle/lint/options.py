"""Options that tune how the linter checks the source."""

from dataclasses import dataclass

KEYWORD_CASES = ("upper", "lower")


@dataclass(frozen=True)
class LintOptions:
    """Configuration of a lint run.

    :param max_identifier_length: Identifiers longer than this many bytes are reported.
    :param enforce_river_alignment: Check that clause keywords are right aligned.
    :param keyword_case: The case keywords are expected in, ``"upper"`` or ``"lower"``.
    :param enabled_rules: Identifiers of the rules to run, ``None`` runs all of them.
    """

    max_identifier_length: int = 30
    enforce_river_alignment: bool = True
    keyword_case: str = "upper"
    enabled_rules: frozenset[str] | None = None

    def __post_init__(self) -> None:
        if self.keyword_case not in KEYWORD_CASES:
            raise ValueError(
                f"keyword_case must be one of {', '.join(KEYWORD_CASES)}, got {self.keyword_case!r}"
            )
        if self.max_identifier_length < 1:
            raise ValueError("max_identifier_length must be a positive integer")
        if self.enabled_rules is not None and not isinstance(self.enabled_rules, frozenset):
            object.__setattr__(self, "enabled_rules", frozenset(self.enabled_rules))

    def is_enabled(self, rule_id: str) -> bool:
        return self.enabled_rules is None or rule_id in self.enabled_rules
