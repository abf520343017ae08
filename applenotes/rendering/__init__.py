"""Markdown rendering for decoded Apple Notes, transport-agnostic.

Contains:
- renderer_iface: the datasource Protocol the renderer resolves attachments through
- merger / markup: attribute run merging and style-to-markup translation
- renderer: text path block layout (headings, lists, quotes, code fences)
- table_builder: CRDT table reconstruction into a Markdown grid
- attachments: kind-based attachment rendering
- converter: per-note orchestration and the batch helper
- memory_datasource: dictionary-backed datasource for tests and tooling
"""
