"""Builds judge prompts from Jinja templates."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Mapping, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

DEFAULT_VERIFICATION_FOCUS: tuple[str, ...] = (
    "Screen structure: the elements described in the SPEC exist in the code",
    "State management: the state and hooks described in the SPEC are used",
    "Processing flow: the flows described in the SPEC are implemented",
    "Validation: the validation rules described in the SPEC are implemented",
    "Error handling: the error cases described in the SPEC are handled",
)

FRAMEWORK_HINTS: Dict[str, str] = {
    "express": "Express.js (app.get, app.post, router.get, router.post, ...)",
    "fastify": "Fastify (fastify.get, fastify.post, ...)",
    "go-echo": "Go Echo (e.GET, e.POST, g.GET, ...)",
    "go-gin": "Go Gin (r.GET, r.POST, group.GET, ...)",
    "rails": "Ruby on Rails (routes.rb, get/post/resources, ...)",
    "django": "Django REST Framework (path, urlpatterns, ...)",
    "graphql": "GraphQL (Query, Mutation, type definitions)",
    "nextjs": "Next.js (pages/ and app/ directory file-based routing)",
    "react-router": "React Router (<Route path=...>, createBrowserRouter, ...)",
}
AUTO_DETECT_HINT = "Auto-detect"


class PromptBuilder:
    """Renders the verification and route extraction prompts."""

    SYSTEM_PROMPT = (
        "You compare specifications with source code. Stay grounded in the provided text "
        "and answer with JSON only."
    )

    def __init__(self, templates_dir: Path | None = None) -> None:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        self._env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=False,
        )

    def verification_prompt(
        self,
        spec_text: str,
        code_contents: Mapping[str, str],
        focus: Optional[Sequence[str]] = None,
    ) -> str:
        template = self._env.get_template("verify.j2")
        return template.render(
            spec_text=spec_text,
            code_contents=sorted(code_contents.items()),
            focus=list(focus) if focus else list(DEFAULT_VERIFICATION_FOCUS),
        )

    def extraction_prompt(self, source_type: str, category: str, code_text: str) -> str:
        template = self._env.get_template("extract.j2")
        is_ui = category == "ui"
        return template.render(
            framework_hint=FRAMEWORK_HINTS.get(source_type, AUTO_DETECT_HINT),
            category=category,
            category_label="page routes" if is_ui else "API endpoints",
            item_label="page route" if is_ui else "endpoint",
            code_text=code_text,
        )


__all__ = ["DEFAULT_VERIFICATION_FOCUS", "FRAMEWORK_HINTS", "PromptBuilder"]
