"""
Built-in meta-agents.

Registered for every configuration unless the configuration defines a
meta-agent with the same name. They delegate only to built-in agents, so
they always pass reference validation.

    olimpus:atenea   framework & component research
    olimpus:hermes   issue-tracker management
    olimpus:hefesto  building & implementation
"""

from olimpus.models import (
    AlwaysMatcher,
    ConfigOverrides,
    KeywordMatcher,
    KeywordMode,
    MetaAgentDefinition,
    ProjectContextMatcher,
    RegexMatcher,
    RoutingRule,
)

ATENEA = MetaAgentDefinition(
    base_model="",
    description="Framework and component research orchestrator",
    prompt_template=(
        "You are Atenea, the research orchestrator.\n\n"
        "1. Check whether the component or pattern already exists in the project\n"
        "2. Search external libraries only if it does not\n"
        "3. Document findings before planning\n"
        "4. Hand research context to the planner"
    ),
    delegates_to=["librarian", "explore", "prometheus"],
    routing_rules=[
        RoutingRule(
            matcher=RegexMatcher(
                pattern=r"(react|vue|angular|svelte|tailwind|next\.js|fastapi|django)",
                flags="i",
            ),
            target_agent="librarian",
            config_overrides=ConfigOverrides(
                prompt=(
                    "Research this framework: official documentation, key components, "
                    "integration steps and best practices. Summarise findings with links."
                ),
            ),
        ),
        RoutingRule(
            matcher=KeywordMatcher(
                keywords=["component", "library", "pattern", "example", "exists", "available"],
                mode=KeywordMode.ANY,
            ),
            target_agent="librarian",
            config_overrides=ConfigOverrides(
                prompt=(
                    "Search for existing components or patterns. Report name, location, "
                    "usage examples and documentation links."
                ),
            ),
        ),
        RoutingRule(
            matcher=KeywordMatcher(
                keywords=["how do we", "similar to", "like we did", "pattern in our code"],
                mode=KeywordMode.ANY,
            ),
            target_agent="explore",
            config_overrides=ConfigOverrides(
                prompt=(
                    "Search the codebase for similar implementations and conventions. "
                    "Return file paths and code snippets."
                ),
            ),
        ),
        RoutingRule(
            matcher=KeywordMatcher(
                keywords=["plan", "implement", "create", "add"],
                mode=KeywordMode.ANY,
            ),
            target_agent="prometheus",
            config_overrides=ConfigOverrides(
                prompt=(
                    "Create an implementation plan that reuses available components and "
                    "follows patterns found during research."
                ),
            ),
        ),
        RoutingRule(
            matcher=AlwaysMatcher(),
            target_agent="librarian",
            config_overrides=ConfigOverrides(
                prompt="Research and document frameworks, libraries or patterns relevant to this request.",
            ),
        ),
    ],
)

HERMES = MetaAgentDefinition(
    base_model="",
    description="Issue-tracker management orchestrator",
    prompt_template=(
        "You are Hermes, the issue-tracker orchestrator. Coordinate planning, "
        "analysis, execution and research of tracker work by routing to "
        "specialized agents."
    ),
    delegates_to=["prometheus", "sisyphus", "oracle", "librarian"],
    routing_rules=[
        RoutingRule(
            matcher=KeywordMatcher(
                keywords=["plan", "create epic", "organize sprint", "roadmap", "structure"],
                mode=KeywordMode.ANY,
            ),
            target_agent="prometheus",
            config_overrides=ConfigOverrides(
                prompt="Create a work plan: epics, stories and tasks with their dependencies.",
            ),
        ),
        RoutingRule(
            matcher=KeywordMatcher(
                keywords=["analyze", "review", "audit", "report", "metrics", "status", "progress"],
                mode=KeywordMode.ANY,
            ),
            target_agent="oracle",
            config_overrides=ConfigOverrides(
                prompt="Analyze tracker data and report on work progress.",
            ),
        ),
        RoutingRule(
            matcher=KeywordMatcher(
                keywords=[
                    "implement",
                    "update",
                    "move issues",
                    "add to sprint",
                    "transition",
                    "close",
                    "resolve",
                    "assign",
                ],
                mode=KeywordMode.ANY,
            ),
            target_agent="sisyphus",
            config_overrides=ConfigOverrides(
                prompt="Execute tracker operations: update issues, manage links and organize work.",
            ),
        ),
        RoutingRule(
            matcher=KeywordMatcher(
                keywords=["search", "find issues", "query", "list", "browse", "show"],
                mode=KeywordMode.ANY,
            ),
            target_agent="librarian",
            config_overrides=ConfigOverrides(
                prompt="Search tracker information and present the findings with links.",
            ),
        ),
        RoutingRule(
            matcher=AlwaysMatcher(),
            target_agent="sisyphus",
            config_overrides=ConfigOverrides(prompt="Execute the tracker-related task."),
        ),
    ],
)

# has_deps requires every listed dependency, so each test runner gets its own rule
_JS_TDD_OVERRIDES = ConfigOverrides(
    prompt=(
        "You are a test-driven development expert. Write tests first, then "
        "the implementation, and keep existing tests passing."
    ),
    variant="tdd",
)

HEFESTO = MetaAgentDefinition(
    base_model="",
    description="Building and implementation meta-agent",
    prompt_template=(
        "Implement the following: {input}\n\n"
        "Requirements:\n"
        "- Write comprehensive tests\n"
        "- Follow project conventions\n"
        "- Ensure maintainability\n"
        "- Handle edge cases"
    ),
    delegates_to=["sisyphus", "hephaestus"],
    routing_rules=[
        RoutingRule(
            matcher=ProjectContextMatcher(has_files=["package.json"], has_deps=["vitest"]),
            target_agent="sisyphus",
            config_overrides=_JS_TDD_OVERRIDES,
        ),
        RoutingRule(
            matcher=ProjectContextMatcher(has_files=["package.json"], has_deps=["jest"]),
            target_agent="sisyphus",
            config_overrides=_JS_TDD_OVERRIDES,
        ),
        RoutingRule(
            matcher=ProjectContextMatcher(has_files=["pyproject.toml"], has_deps=["pytest"]),
            target_agent="sisyphus",
            config_overrides=ConfigOverrides(
                prompt=(
                    "You are a test-driven development expert. Write pytest tests first, "
                    "then the implementation."
                ),
                variant="tdd",
            ),
        ),
        RoutingRule(
            matcher=AlwaysMatcher(),
            target_agent="hephaestus",
            config_overrides=ConfigOverrides(
                prompt="You are a builder. Implement this feature with attention to quality and testing.",
            ),
        ),
    ],
)

BUILTIN_META_AGENTS: dict[str, MetaAgentDefinition] = {
    "olimpus:atenea": ATENEA,
    "olimpus:hermes": HERMES,
    "olimpus:hefesto": HEFESTO,
}
