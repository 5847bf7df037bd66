"""Pure policy code: path categories, the gate decision, header visibility.

Nothing in here touches HTTP or cookies, so the policies can be tested and
reused by both the server and the smoke runner.
"""
__all__ = ["paths", "gate", "chrome"]
