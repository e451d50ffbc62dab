"""Fundraiser board updater for Vestaboard split-flap displays.

Features:
- Reads the running donation total from a Google Sheet
- Lays it out as a 6x22 Vestaboard character grid
- Publishes the grid to every configured board with retry
- Runs on a wall-clock schedule inside an active window
- Provisions a DigitalOcean droplet that runs the service
"""

__version__ = "1.0.0"
