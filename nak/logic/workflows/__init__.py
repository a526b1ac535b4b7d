"""Feature menus loaded on demand by the module loader.

Each module exposes ``run_menu(ctx)`` and may define ``initialize(ctx)``.
"""
