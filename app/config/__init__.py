"""
Configuration package.

Settings are loaded lazily from app.config.settings; business constants
live in energy_packs, rank_ladder and constants.
"""
