"""
HubAuditor Backend Test Suite.

Test modules:
- test_audits: metric calculators and formatters for all five audit types
- test_audit_registry: audit type dispatch
- test_prompt_builder: label conversion and prompt layout
- test_generation_client: error classification and text extraction
- test_section_consolidator: section parsing and canonical merging
- test_markdown_renderer: markdown to sanitized HTML
- test_hubspot_client: pagination, throttling settings and error mapping
- test_audit_pipeline: end-to-end run with mocked clients
- test_security: password hashing, session tokens, token encryption
- test_repositories: user, token and history data access
- test_api: HTTP endpoints through the FastAPI TestClient
"""
