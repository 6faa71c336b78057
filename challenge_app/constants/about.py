"""Static metadata describing the Daily Challenge service."""

APP_NAME = "DailyChallenge"
APP_VERSION = "0.1"
