"""
Jukebox: a resilient Audius streaming proxy and playback engine.
"""
