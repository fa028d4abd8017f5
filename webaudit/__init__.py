"""
WebAudit: audits a web page with a page auditor and a performance tester,
and attaches a remediation text to every issue found.
"""

__version__ = "0.1.0"
