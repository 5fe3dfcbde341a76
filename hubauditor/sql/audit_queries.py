"""
Parameterized SQL for the audit history trail.

audit_data holds a small JSON summary of each run (record counts, headline
metrics); the full report is never persisted.
"""


INSERT_AUDIT_RECORD: str = """
    INSERT INTO audit_history (user_id, audit_type, audit_data)
    VALUES ($1, $2, $3::jsonb)
    RETURNING id, user_id, audit_type, audit_data, created_at
"""

SELECT_AUDIT_HISTORY: str = """
    SELECT id, user_id, audit_type, audit_data, created_at
    FROM audit_history
    WHERE user_id = $1
    ORDER BY created_at DESC
    LIMIT $2
"""
