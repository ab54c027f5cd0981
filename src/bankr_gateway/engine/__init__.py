"""
Job orchestration engine: error taxonomy, classification, polling and the
event chain driving the prompt workflow.
"""
