"""
SupportIQ Deflection

Per-ticket deflection decisions (eligibility, AI response generation,
confidence routing) and similarity clustering of historical tickets for
deflection-opportunity analysis.
"""

__version__ = "1.0.0"
