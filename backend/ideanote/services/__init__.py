# Services package init
"""
IdeaNote Backend: Services Layer
==================================

What:  Business logic between routes (HTTP) and the database.

Service Inventory:
    - block_buffer:   never-empty editing buffer and session block ids
    - transcoder:     blocks ⇄ persisted content units + images
    - scalar_codec:   target and due-date parsing/formatting
    - editor_session: open/edit/save control flow over a NoteStore
    - note_store:     NoteStore protocol and its database implementation
    - note_service:   async SQLAlchemy note persistence
    - file_service:   image upload validation, storage and reads

The transcoder, codec and buffer are synchronous and pure; only
note_service, note_store and file_service do I/O.
"""
