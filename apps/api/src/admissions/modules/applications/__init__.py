"""
Applications Module

Handles the admission application lifecycle:
1. Creation (one application per student per academic year)
2. Submission and final submission (freeze) by the student
3. Review and decision by admins and program admins
4. Append-only status history

API Endpoints:
- POST /applications - Create a draft application
- GET /applications/me - The caller's application
- GET /applications/{id} - Application details
- POST /applications/{id}/submit - Submit
- POST /applications/{id}/freeze - Final submission
- GET /applications/{id}/history - Status history
- GET /applications/{id}/status - Status overview
- GET /admin/applications - Reviewer list
- POST /admin/applications/{id}/start-review - Start review
- POST /admin/applications/{id}/decision - Approve or reject

Routers live in ``router`` and ``admin_router``; this package does not import
them so that model modules can be imported on their own.
"""
