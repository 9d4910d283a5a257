"""
Services: MongoDB access, business logic and email notifications
"""
