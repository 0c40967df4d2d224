"""Moteur de règles pour un jeu de colonisation et de commerce (2 à 6 joueurs)."""

__version__ = "0.1.0"
