"""
Tests for the hospital appointment chat service

Test suite covering:
- Step machine transitions and record invariants
- Department resolution
- Webhook submission and outcome interpretation
- Chat sessions and reply-chain serialization
- API endpoints

Run tests with:
    python -m pytest hospital_agent/appointment/tests/ -v
    python -m pytest hospital_agent/appointment/tests/test_fsm_flow.py -v
"""
