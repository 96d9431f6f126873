from __future__ import annotations

from quizbank.ui.cli import run

run()
