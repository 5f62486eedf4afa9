"""Static metadata describing QuizGate."""

APP_NAME = "QuizGate"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "QuizGate hands a finished quiz over to its results screen through single-use "
    "session tickets, so the score shown is the one recorded when the quiz ended."
)
