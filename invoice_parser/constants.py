"""
Shared vocabulary of the invoice parser.

Format and subtype names used across classification, preprocessing,
routing and the wire output.
"""

# Invoice formats
DOMESTIC = "domestic"            # amazon.com layout
INTERNATIONAL = "international"  # amazon.eu layout

# Subtypes of the international format
BUSINESS = "business"
CONSUMER = "consumer"

# Quality levels and advisory actions of a classification
VERY_LOW = "very_low"
LOW = "low"
MEDIUM = "medium"
HIGH = "high"

REJECT = "reject"
REVIEW = "review"
ACCEPT = "accept"

# Language detection result when no locale is confident enough
UNKNOWN_LANGUAGE = "UNKNOWN"
