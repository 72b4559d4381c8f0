"""Vowel nasalization from acoustics: an XGBoost lab for Spanish/English bilingual speech."""

__version__ = "0.1.0"
