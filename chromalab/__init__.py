"""Chroma Lab: a color-mixing grid puzzle engine with level generation, solvers and a JSON API."""
