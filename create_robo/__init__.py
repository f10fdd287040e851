"""create-robo -- generator for Robo.js Discord bots, activities, and plugins."""

__version__ = "0.1.0"
