"""Mirror a Subversion working copy into an independently tracked one."""

__version__ = "0.1.0"
