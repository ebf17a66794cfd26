"""Pelican intake - AI-assisted scope intake for construction work.

Turns a client's free-text scope description into a template
recommendation, a pre-walkthrough consultation checklist, a clarification
conversation, and a WBS-based project plan ready for task creation.

Architecture:
- Scope analysis: keyword scoring against the job template library
- Consultation prep: checklist from the Louisiana knowledge base
- Research: LLM permit/code guidance with caching and provider fallback
- Task planner: clarification dialogue and WBS plan assembly
- Task assembly: priced work-order payloads for the project system
"""

__version__ = "0.1.0"
