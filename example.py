#!/usr/bin/env python3
"""
Mongo Data Service Example

Saves, fetches, updates and removes a record against a local MongoDB, printing
the change notifications the service emits along the way.
"""

import asyncio

from mongo_data_service import QueueSink, close_mongo_client, create_data_service, get_settings


async def main():
    """Example usage of DataService."""
    
    settings = get_settings()
    print(f"📦 Using database '{settings.database_name}' at collection '{settings.default_collection}'")
    
    sink = QueueSink()
    service = create_data_service(notification=sink)
    
    try:
        outcome = await service.save({"msg": "hello"})
        record = outcome.record
        print(f"✅ Created record _id={record['_id']} id={record.get('id')}")
        
        by_native = await service.fetch_one(str(record["_id"]))
        by_independent = await service.fetch_one(record.get("id"))
        print(f"🔎 Found by _id: {by_native['msg']}, by id: {by_independent['msg'] if by_independent else None}")
        
        by_native["msg"] = "hi"
        await service.save(by_native)
        print(f"✏️  Updated message: {(await service.fetch_one(record['_id']))['msg']}")
        
        removed = await service.remove(record["_id"])
        print(f"🗑️  Removed {removed.deleted_count} record(s)")
        
        while not sink.empty():
            notification = await sink.get()
            print(f"  📣 {notification.event_name}: {notification.kind.value}")
    
    except Exception as e:
        print(f"❌ Example failed: {str(e)}")
    
    finally:
        await close_mongo_client()


if __name__ == "__main__":
    print("=" * 60)
    print("📦 MONGO DATA SERVICE EXAMPLE")
    print("=" * 60)
    asyncio.run(main())
    print("=" * 60)
