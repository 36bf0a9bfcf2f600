"""Use-case / operations layer.

High-level actions invoked by the backend: pointer-to-image mapping, cutout
selection, serialized preview generation, keyboard shortcut dispatch and file
operations.

Modules here stay free of QML/widget code; Qt is only used where signals are
needed to cross threads (preview_coordinator).
"""
