"""
Documents Module

Supporting documents of an application:
- requirement matrix (what the program asks for vs. what was uploaded)
- upload and replacement with file/database consistency
- administrative verification
- background reaping of orphaned uploads

Routers live in ``router`` and ``admin_router``; import them from there.
"""
