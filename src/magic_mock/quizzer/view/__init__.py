from .quiz import TRANSLATION_LANGUAGES, QuestionView, QuizApp
from .report import render_folders, render_history, render_result

__all__ = [
    "TRANSLATION_LANGUAGES",
    "QuestionView",
    "QuizApp",
    "render_folders",
    "render_history",
    "render_result",
]
