"""
DDL for the studysense DuckDB database.

Timestamps are stored as naive UTC values.
"""

DB_SCHEMA_SQL = """
CREATE SEQUENCE IF NOT EXISTS study_sessions_seq START 1;

CREATE TABLE IF NOT EXISTS study_sessions (
    session_id BIGINT PRIMARY KEY DEFAULT nextval('study_sessions_seq'),
    student_id VARCHAR NOT NULL,
    subject VARCHAR NOT NULL,
    hours_studied DOUBLE NOT NULL CHECK (hours_studied BETWEEN 0 AND 24),
    time_of_day VARCHAR NOT NULL,
    understanding_score INTEGER NOT NULL
        CHECK (understanding_score BETWEEN 0 AND 100),
    retention_score INTEGER NOT NULL
        CHECK (retention_score BETWEEN 0 AND 100),
    recorded_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_study_sessions_student
    ON study_sessions (student_id);

CREATE SEQUENCE IF NOT EXISTS analyses_seq START 1;

CREATE TABLE IF NOT EXISTS analyses (
    analysis_id BIGINT PRIMARY KEY DEFAULT nextval('analyses_seq'),
    student_id VARCHAR NOT NULL,
    created_at TIMESTAMP NOT NULL,
    report_json VARCHAR NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_analyses_student ON analyses (student_id);
"""
