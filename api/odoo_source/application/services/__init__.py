"""
Servicios del motor de sync (sin estado entre corridas salvo el store).
"""
