"""
CVenom - multi-tenant CV generation

Renders a structured résumé into PDF by combining tenant-owned content files with a
pluggable Typst template and invoking the external typst compiler.

Architecture:
- Templating Context: template discovery, CV data model, text format conversion
- Rendering Context: per-request workspace staging and PDF compilation
- Generation Context: request orchestration with guaranteed workspace cleanup
"""

__version__ = "0.1.0"
