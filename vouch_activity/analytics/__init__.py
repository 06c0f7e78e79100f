"""
Activity analytics: event classification, program valuation and the two
pipeline orchestrators (deployed programs, trading volume).
"""
