"""
Matcher Engine

Evaluates a single matcher against a RoutingContext. Five variants:

    keyword          case-insensitive substring match (any / all)
    complexity       cheap textual heuristic, NOT semantic analysis
    regex            Python re search with conventional modifier letters
    project_context  required files on disk and declared dependencies
    always           unconditional fallback

Evaluation never raises past this module: a matcher that cannot be
evaluated (bad pattern, unreadable directory) is logged and treated as
non-matching so that one broken rule cannot abort routing.
"""

import logging
import math
import re
from pathlib import Path
from typing import Callable

from olimpus.models import (
    AlwaysMatcher,
    ComplexityMatcher,
    ComplexityThreshold,
    KeywordMatcher,
    KeywordMode,
    Matcher,
    ProjectContextMatcher,
    RegexMatcher,
    RoutingContext,
)

logger = logging.getLogger(__name__)

# Vocabulary counted by the complexity heuristic (each term counts once)
TECHNICAL_KEYWORDS = (
    "architecture",
    "performance",
    "optimization",
    "database",
    "async",
    "concurrent",
    "algorithm",
    "data structure",
    "api",
    "integration",
    "security",
    "encryption",
    "authentication",
    "deployment",
    "infrastructure",
    "testing",
    "refactor",
    "debug",
    "trace",
    "profile",
)

COMPLEXITY_THRESHOLDS = {
    ComplexityThreshold.LOW: 2,
    ComplexityThreshold.MEDIUM: 5,
    ComplexityThreshold.HIGH: 10,
}

# Prompt lines per complexity point
LINES_PER_POINT = 10

# Conventional modifier letters mapped onto re flags. Letters mapped to 0
# only change behaviour across repeated matching, which a single search
# never does, or are already Python defaults (unicode).
REGEX_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "g": 0,
    "y": 0,
    "u": 0,
    "d": 0,
    "v": 0,
}

DEFAULT_REGEX_FLAGS = "i"

FileExists = Callable[[Path], bool]


def calculate_complexity(prompt: str) -> int:
    """
    Score a prompt with the complexity heuristic.

    score = ceil(line_count / 10) + number of TECHNICAL_KEYWORDS present

    This is an approximation: a long chatty prompt can outscore a short
    hard one.
    """
    lines = len(prompt.split("\n"))
    score = math.ceil(lines / LINES_PER_POINT)

    prompt_lower = prompt.lower()
    score += sum(1 for keyword in TECHNICAL_KEYWORDS if keyword in prompt_lower)
    return score


def compile_pattern(pattern: str, flags: str | None = None) -> re.Pattern:
    """
    Compile a regex matcher pattern with its modifier letters.

    Absent or empty flags default to case-insensitive matching.

    Raises:
        re.error: If the pattern is malformed or a flag letter is unknown
    """
    letters = flags or DEFAULT_REGEX_FLAGS
    compiled_flags = 0
    for letter in letters:
        if letter not in REGEX_FLAG_MAP:
            raise re.error(f"invalid regex flag '{letter}' in '{letters}'")
        compiled_flags |= REGEX_FLAG_MAP[letter]
    return re.compile(pattern, compiled_flags)


def evaluate_keyword_matcher(matcher: KeywordMatcher, context: RoutingContext) -> bool:
    prompt = context.prompt.lower()
    keywords = [kw.lower() for kw in matcher.keywords]

    if matcher.mode is KeywordMode.ANY:
        return any(kw in prompt for kw in keywords)
    return all(kw in prompt for kw in keywords)


def evaluate_complexity_matcher(
    matcher: ComplexityMatcher, context: RoutingContext
) -> bool:
    bound = COMPLEXITY_THRESHOLDS.get(matcher.threshold, 0)
    return calculate_complexity(context.prompt) >= bound


def evaluate_regex_matcher(matcher: RegexMatcher, context: RoutingContext) -> bool:
    try:
        regex = compile_pattern(matcher.pattern, matcher.flags)
    except re.error as e:
        logger.warning(f"Invalid regex pattern: {matcher.pattern} ({e})")
        return False
    return regex.search(context.prompt) is not None


def path_exists(path: Path) -> bool:
    return path.exists()


def evaluate_project_context_matcher(
    matcher: ProjectContextMatcher,
    context: RoutingContext,
    file_exists: FileExists = path_exists,
) -> bool:
    """
    Check required files and dependencies (ALL semantics for both lists).

    A file counts as present when it exists under project_dir or is listed
    in context.project_files.
    """
    if matcher.has_files:
        known_files = set(context.project_files)
        for file_path in matcher.has_files:
            if file_path in known_files:
                continue
            try:
                exists = file_exists(Path(context.project_dir) / file_path)
            except OSError as e:
                logger.warning(f"Cannot probe '{file_path}' in {context.project_dir}: {e}")
                exists = False
            if not exists:
                return False

    if matcher.has_deps:
        deps = set(context.project_deps)
        if not all(dep in deps for dep in matcher.has_deps):
            return False

    return True


def evaluate_matcher(
    matcher: Matcher,
    context: RoutingContext,
    file_exists: FileExists = path_exists,
) -> bool:
    """
    Evaluate one matcher against the routing context.

    Args:
        matcher: Any matcher variant
        context: Prompt and project information for this request
        file_exists: Filesystem probe used by project_context matchers

    Returns:
        True if the matcher is satisfied. Unknown or unevaluable matchers
        return False after logging.
    """
    try:
        if isinstance(matcher, KeywordMatcher):
            return evaluate_keyword_matcher(matcher, context)
        if isinstance(matcher, ComplexityMatcher):
            return evaluate_complexity_matcher(matcher, context)
        if isinstance(matcher, RegexMatcher):
            return evaluate_regex_matcher(matcher, context)
        if isinstance(matcher, ProjectContextMatcher):
            return evaluate_project_context_matcher(matcher, context, file_exists)
        if isinstance(matcher, AlwaysMatcher):
            return True
    except (TypeError, AttributeError, ValueError) as e:
        # Malformed field values (non-string pattern or keywords)
        logger.warning(f"Cannot evaluate {matcher_type_name(matcher)} matcher {matcher!r}: {e}")
        return False

    logger.warning(f"Unknown matcher type: {type(matcher).__name__}")
    return False


def describe_match(matcher: Matcher, context: RoutingContext) -> str:
    """Human-readable account of what a matcher matched, for diagnostics."""
    if isinstance(matcher, KeywordMatcher):
        prompt_lower = context.prompt.lower()
        matched = [kw for kw in matcher.keywords if kw.lower() in prompt_lower]
        return f"matched keywords: {', '.join(matched)}"
    if isinstance(matcher, ComplexityMatcher):
        return f"complexity score >= {matcher.threshold.value}"
    if isinstance(matcher, RegexMatcher):
        return f"matched pattern: /{matcher.pattern}/{matcher.flags or ''}"
    if isinstance(matcher, ProjectContextMatcher):
        parts = []
        if matcher.has_files:
            parts.append(f"files: {', '.join(matcher.has_files)}")
        if matcher.has_deps:
            parts.append(f"deps: {', '.join(matcher.has_deps)}")
        return "; ".join(parts) if parts else "project context match"
    if isinstance(matcher, AlwaysMatcher):
        return "always match"
    return f"unknown matcher: {type(matcher).__name__}"


def matcher_type_name(matcher: Matcher) -> str:
    """Return the configuration discriminator for a matcher."""
    matcher_type = getattr(matcher, "type", None)
    return matcher_type.value if matcher_type is not None else type(matcher).__name__
