"""
Role definitions for the lab directory.

Authentication and per-endpoint authorization live outside this service;
the engine only needs to know which roles receive alert notifications and
which roles are monitored for inactivity and velocity.
"""


class Roles:
    """Standard roles in the lab directory."""
    ADMIN = "admin"
    PROFESSOR = "professor"
    POSTDOC = "postdoc"
    STUDENT = "student"
    
    # All roles list for validation
    ALL = [ADMIN, PROFESSOR, POSTDOC, STUDENT]

    # Recipients of alert fan-out
    SUPERVISORY = [PROFESSOR, ADMIN]

    # Subjects of the inactivity and velocity detectors
    MONITORED = [STUDENT]

