# -*- coding: utf-8 -*-

from .MoodleQuiz import MoodleQuiz
from .ordering import OrderingXmlQuestion

__all__ = [
    "MoodleQuiz",
    "OrderingXmlQuestion",
]
