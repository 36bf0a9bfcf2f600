"""QML-facing application facade and state objects.

- Single command entry: backend.dispatch(cmd, payload)
- UI binding via state QObjects (backend.viewer / backend.cutout)
- Python->QML notifications via backend.event / backend.taskEvent
"""
