"""Qt UI for the student quiz window.

Widgets are imported from their modules directly so that the rendering
helpers stay importable without loading Qt.
"""
