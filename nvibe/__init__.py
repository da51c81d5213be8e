"""N Vibe, prompt-driven web project workspace with undo history."""
