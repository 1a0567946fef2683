"""
bananaflow
==========
Prompt-driven image studio backed by Gemini: text-to-image, image-to-image
remix, and a small Input -> Process -> Output workflow canvas.

Layout:
    core/    graph model, editor and executor (no web dependencies)
    server/  FastAPI + Socket.IO service, Gemini client, session state
"""

__version__ = "0.1.0"
