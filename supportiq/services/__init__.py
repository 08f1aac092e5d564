"""
Business Logic Services

cost_model, clustering and insights are pure; pipeline, analysis and
faq_generator orchestrate them with the repositories and AI adapters.
"""
