"""
Demo data for the in-memory store.

Four accounts (password ``password``) and three projects covering the
main workflow positions:

    client@example.com   Alice Client  (client)
    editor@example.com   Bob Editor    (editor)
    admin@example.com    Ken Admin     (admin)
    client2@example.com  Dave Client   (client)
"""

import logging
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from cutroom.schemas.profile import default_avatar_url

from .base import StoreError

if TYPE_CHECKING:
    from .memory import MemoryDataStore

logger = logging.getLogger(__name__)

DEMO_PASSWORD = "password"

DEMO_USERS = [
    ("u1", "client@example.com", "Alice Client", "client"),
    ("u2", "editor@example.com", "Bob Editor", "editor"),
    ("u3", "admin@example.com", "Ken Admin", "admin"),
    ("u4", "client2@example.com", "Dave Client", "client"),
]


async def seed_demo_data(store: "MemoryDataStore", bucket: str) -> None:
    """
    Populate an empty memory store with the demo accounts and projects.

    Seeding a store that already holds the demo accounts is a no-op.
    """
    now = datetime.utcnow()
    day = timedelta(days=1)

    try:
        for user_id, email, full_name, role in DEMO_USERS:
            store.add_user(
                email,
                DEMO_PASSWORD,
                {"full_name": full_name, "role": role},
                user_id=user_id,
            )
    except StoreError:
        logger.info("Demo data already present, skipping seed")
        return

    for user_id, email, full_name, role in DEMO_USERS:
        await store.insert("profiles", {
            "id": user_id,
            "email": email,
            "full_name": full_name,
            "role": role,
            "avatar_url": default_avatar_url(full_name),
        })

    await store.insert("projects", {
        "id": "p1",
        "client_id": "u1",
        "editor_id": "u2",
        "title": "Summer Collection Launch",
        "description": "Energetic video showcasing our new summer line. Fast cuts, upbeat music.",
        "editing_style": "Cinematic",
        "platforms": ["Instagram", "TikTok"],
        "aspect_ratio": "9:16",
        "desired_duration_seconds": 30,
        "status": "in_progress",
        "priority": "high",
        "due_date": now + 3 * day,
        "reference_links": ["https://youtube.com/example"],
        "notes_for_editor": 'Please use the assets from the "Raw" folder.',
        "created_at": now - 2 * day,
        "updated_at": now,
    })
    await store.insert("projects", {
        "id": "p2",
        "client_id": "u1",
        "title": "Testimonial Compilation",
        "description": "Customer interviews stitched together with soft background music.",
        "editing_style": "Corporate",
        "platforms": ["LinkedIn", "YouTube"],
        "aspect_ratio": "16:9",
        "desired_duration_seconds": 120,
        "status": "new",
        "priority": "normal",
        "due_date": now + 10 * day,
        "created_at": now,
        "updated_at": now,
    })
    await store.insert("projects", {
        "id": "p3",
        "client_id": "u4",
        "editor_id": "u2",
        "title": "Product Unboxing",
        "description": "Detailed unboxing of the X-2000 widget.",
        "editing_style": "Vlog",
        "platforms": ["YouTube"],
        "aspect_ratio": "16:9",
        "desired_duration_seconds": 600,
        "status": "awaiting_client_review",
        "priority": "normal",
        "due_date": now - day,
        "created_at": now - 5 * day,
        "updated_at": now,
    })

    files = [
        ("f1", "p1", "u1", "raw", "IMG_4021.MOV", "video/quicktime"),
        ("f2", "p3", "u2", "final", "Unboxing_v1_Final.mp4", "video/mp4"),
    ]
    for file_id, project_id, uploaded_by, file_type, file_name, mime_type in files:
        storage_path = f"{project_id}/{file_type}/demo_{file_name}"
        data = f"demo content of {file_name}\n".encode()
        await store.upload(bucket, storage_path, data, mime_type)
        await store.insert("project_files", {
            "id": file_id,
            "project_id": project_id,
            "uploaded_by": uploaded_by,
            "file_type": file_type,
            "file_name": file_name,
            "file_size_bytes": len(data),
            "mime_type": mime_type,
            "storage_path": storage_path,
        })

    await store.insert("comments", {
        "id": "c1",
        "project_id": "p1",
        "author_id": "u1",
        "body": "Just uploaded the raw files!",
        "is_internal": False,
        "created_at": now - timedelta(seconds=86000),
    })
    await store.insert("comments", {
        "id": "c2",
        "project_id": "p1",
        "author_id": "u2",
        "body": "Got it, starting work now.",
        "is_internal": False,
        "created_at": now - timedelta(seconds=85000),
    })

    logger.info(f"Seeded demo data: {len(DEMO_USERS)} users, 3 projects")
