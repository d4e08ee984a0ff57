"""TALON.md manifest handling.

A manifest is a YAML metadata block between two ``---`` delimiter lines,
followed by free-text documentation:

    ---
    name: github
    version: 1.0.0
    description: GitHub integration for issues, PRs, and workflows
    tags: [github, devtools]
    ---
    # GitHub Talon
    ...
"""

MANIFEST_FILE = "TALON.md"
DELIMITER = "---"
