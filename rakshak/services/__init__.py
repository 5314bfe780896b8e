"""
Services layer - Business logic goes here.
Keep services focused on specific domains (incidents, contacts, SOS, etc.)

DESIGN PRINCIPLE:
- Services contain business logic, NOT routes
- Services raise rakshak.core.exceptions errors; main.py maps them to HTTP
- External providers (storage, messaging) sit behind small interfaces
  in their own subpackages and are chosen by settings
"""
