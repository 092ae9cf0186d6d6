"""Health survey risk assessment.

Turns a survey submission (form photo, free text or structured fields) into a
normalized profile, a deterministic risk score and a set of recommendations.
"""
