"""TMDB Browser - a terminal browser for movies and TV shows on The Movie Database."""

__version__ = "0.1.0"
