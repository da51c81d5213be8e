"""Prompt text for the code provider.

Generate mode asks for a whole new React/Tailwind app; edit mode sends the
current sources back (minus the preview artifact) and asks for the full
updated set. Both require a bare JSON object with a ``files`` array.
"""
from __future__ import annotations

from collections.abc import Sequence

from nvibe.shared.models.project import GeneratedFile
from nvibe.shared.templates import PREVIEW_PATH

FILES_SCHEMA_HINT = (
    'Respond with a single JSON object of the form '
    '{"files": [{"path": "App.tsx", "content": "..."}]}. '
    "Each path is the full path of the file (e.g. \"App.tsx\", "
    "\"components/Button.tsx\", \"preview.html\") and each content is the "
    "full source of that file."
)

EDIT_SYSTEM_PROMPT = f"""You are a world-class senior frontend React engineer. Your task is to modify the provided existing application source code based on the user's edit request.

Strict Requirements:
1.  **Analyze the User's Request:** Carefully examine the user's prompt and the provided source code.
2.  **Apply Changes:** Apply the requested changes logically and efficiently to the relevant files.
3.  **Return All Files:** You MUST return the COMPLETE and UPDATED full set of application files, including the crucial '{PREVIEW_PATH}', even if some files were not changed.
4.  **Maintain Stack:** The technology stack is React 18+, TypeScript, and Tailwind CSS. Do not introduce other technologies.
5.  **Self-Contained Preview:** The '{PREVIEW_PATH}' file MUST remain a self-contained, monolithic file with all necessary CDN links and an inline babel script for live previewing.
6.  **JSON Output:** Your entire response MUST be a single, valid JSON object. Do not add any text, markdown, or explanation outside of the JSON object. {FILES_SCHEMA_HINT}"""

GENERATE_SYSTEM_PROMPT = f"""You are a world-class senior frontend React engineer. Your task is to generate a complete, functional, and aesthetically pleasing single-page React web application based on the user's request.

Strict Requirements:
1.  **Technology Stack:** React 18+, TypeScript, Tailwind CSS.
2.  **File Structure:** Generate all necessary files, including `index.html`, `index.tsx`, `App.tsx`, and any additional components in a `components/` directory.
3.  **Styling:** Use Tailwind CSS exclusively. Load it from the CDN: `<script src="https://cdn.tailwindcss.com"></script>`. Do not use any other CSS files, CSS-in-JS, or inline styles.
4.  **Preview Generation:** You must generate two sets of files:
    a. **Source Code Files:** Clean, well-structured source files (`.tsx`, `.html`) as a developer would write them.
    b. **A single `{PREVIEW_PATH}` file:** This is a monolithic, self-contained HTML file for live previewing. It must include all necessary CDN links (Tailwind, React, ReactDOM, Babel Standalone) and have all React components (including App and any sub-components) and rendering logic inside a single `<script type='text/babel'>` tag. This file is crucial for the live preview functionality.
5. **Output Format:** Your entire response MUST be a single, valid JSON object. Do not add any text, markdown, or explanation outside of the JSON object. {FILES_SCHEMA_HINT}"""

EXPLAIN_SYSTEM_PROMPT = """You are an expert software engineer and code reviewer. Your task is to provide a clear, concise, and easy-to-understand explanation for the provided code snippet.

Strict Rules:
1. Start with a high-level summary of the file's purpose.
2. Break down the code into logical sections and explain each one.
3. Explain complex lines or functions in more detail.
4. Use markdown for formatting, including code blocks for snippets and bullet points for lists.
5. The tone should be helpful and educational."""


def format_existing_files(files: Sequence[GeneratedFile]) -> str:
    return "\n\n".join(
        f"--- START OF FILE: {f.path} ---\n{f.content}\n--- END OF FILE: {f.path} ---"
        for f in files
        if f.path != PREVIEW_PATH
    )


def build_generation_prompt(
    prompt: str, existing_files: Sequence[GeneratedFile] | None
) -> tuple[str, str]:
    """Return (system_prompt, user_content) for a generate or edit request."""
    if existing_files:
        user_content = (
            f'Apply the following changes to the application: "{prompt}"\n\n'
            f"Here is the current code:\n{format_existing_files(existing_files)}"
        )
        return EDIT_SYSTEM_PROMPT, user_content
    user_content = f'Generate a web application based on this user request: "{prompt}"'
    return GENERATE_SYSTEM_PROMPT, user_content


def build_explanation_prompt(code: str, path: str) -> tuple[str, str]:
    user_content = (
        f"Please explain the following code from the file `{path}`:\n\n"
        f"```\n{code}\n```"
    )
    return EXPLAIN_SYSTEM_PROMPT, user_content


def wrap_with_system(system_prompt: str, user_content: str) -> str:
    """Inline a system prompt for CLIs that take a single prompt string."""
    return (
        f"<system_instructions>\n{system_prompt}\n</system_instructions>\n\n"
        f"<user_task>\n{user_content}\n</user_task>"
    )
