import unittest
import threading
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from database import Base, init_db, make_engine, make_session_factory
from errors import AddressAlreadyAllocated, AddressUnavailable, NotAllocated, StorageFailure
from memory_storage import MemoryIPStorage
from sql_storage import SQLIPStorage


class StorageContractTests:
    """Behaviour every IPStorage backend must share. Subclasses provide self.storage."""

    def test_add_and_list(self):
        self.storage.add_available("192.168.1.2")
        self.storage.add_available("192.168.1.1")
        self.storage.add_available("192.168.1.1")  # idempotent
        self.assertEqual(self.storage.list_available(), ["192.168.1.1", "192.168.1.2"])
        self.assertEqual(self.storage.count_available(), 2)

    def test_list_available_is_numeric(self):
        for ip in ["10.0.0.100", "10.0.0.4", "10.0.0.12"]:
            self.storage.add_available(ip)
        self.assertEqual(self.storage.list_available(), ["10.0.0.4", "10.0.0.12", "10.0.0.100"])

    def test_add_allocated_ip_fails(self):
        self.storage.add_available("192.168.1.1")
        self.storage.allocate("192.168.1.1", "test")
        with self.assertRaises(AddressAlreadyAllocated):
            self.storage.add_available("192.168.1.1")

    def test_remove(self):
        self.storage.add_available("192.168.1.1")
        self.storage.remove_available("192.168.1.1")
        self.assertFalse(self.storage.is_available("192.168.1.1"))
        with self.assertRaises(AddressUnavailable):
            self.storage.remove_available("192.168.1.1")

    def test_is_available(self):
        self.storage.add_available("192.168.1.1")
        self.assertTrue(self.storage.is_available("192.168.1.1"))
        self.assertFalse(self.storage.is_available("192.168.1.2"))

    def test_allocate_moves_address(self):
        self.storage.add_available("192.168.1.1")
        self.storage.allocate("192.168.1.1", "web server")
        self.assertFalse(self.storage.is_available("192.168.1.1"))
        self.assertEqual(self.storage.list_allocated(), {"192.168.1.1": "web server"})
        self.assertEqual(self.storage.count_available(), 0)
        self.assertEqual(self.storage.count_allocated(), 1)

    def test_allocate_unavailable_fails(self):
        with self.assertRaises(AddressUnavailable):
            self.storage.allocate("192.168.1.2", "test")
        self.storage.add_available("192.168.1.1")
        self.storage.allocate("192.168.1.1", "first")
        with self.assertRaises(AddressUnavailable):
            self.storage.allocate("192.168.1.1", "second")
        self.assertEqual(self.storage.list_allocated(), {"192.168.1.1": "first"})

    def test_deallocate(self):
        self.storage.add_available("192.168.1.1")
        self.storage.allocate("192.168.1.1", "test")
        self.storage.deallocate("192.168.1.1")
        self.assertTrue(self.storage.is_available("192.168.1.1"))
        self.assertEqual(self.storage.list_allocated(), {})
        with self.assertRaises(NotAllocated):
            self.storage.deallocate("192.168.1.1")

    def test_block_record_preserved(self):
        self.storage.add_available("10.0.0.0")
        self.storage.allocate("10.0.0.0", "10.0.0.0/30 - db - primary")
        self.assertEqual(self.storage.list_allocated()["10.0.0.0"], "10.0.0.0/30 - db - primary")

    def test_list_allocated_is_a_copy(self):
        self.storage.add_available("192.168.1.1")
        self.storage.allocate("192.168.1.1", "test")
        listing = self.storage.list_allocated()
        listing.clear()
        self.assertEqual(self.storage.count_allocated(), 1)

    def test_address_lifecycle(self):
        ip = "10.0.0.1"
        self.storage.add_available(ip)
        self.assertTrue(self.storage.is_available(ip))
        self.storage.allocate(ip, "host")
        self.assertEqual(self.storage.list_allocated(), {ip: "host"})
        self.storage.deallocate(ip)
        self.assertTrue(self.storage.is_available(ip))
        self.storage.remove_available(ip)
        self.assertFalse(self.storage.is_available(ip))
        self.assertEqual(self.storage.list_allocated(), {})

        # every step fails against the wrong prior state
        with self.assertRaises(AddressUnavailable):
            self.storage.remove_available(ip)
        with self.assertRaises(AddressUnavailable):
            self.storage.allocate(ip, "host")
        with self.assertRaises(NotAllocated):
            self.storage.deallocate(ip)


class TestMemoryIPStorage(StorageContractTests, unittest.TestCase):

    def setUp(self):
        self.storage = MemoryIPStorage()

    def test_concurrent_allocations_do_not_double_book(self):
        self.storage.add_available("10.0.0.1")
        winners = []

        def grab(name):
            try:
                self.storage.allocate("10.0.0.1", name)
                winners.append(name)
            except AddressUnavailable:
                pass

        threads = [threading.Thread(target=grab, args=(f"t{i}",)) for i in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(len(winners), 1)
        self.assertEqual(self.storage.list_allocated(), {"10.0.0.1": winners[0]})


class TestSQLIPStorage(StorageContractTests, unittest.TestCase):

    def setUp(self):
        """Set up a clean in-memory database for each test."""
        self.engine = make_engine("sqlite://", poolclass=StaticPool)
        init_db(self.engine)
        self.storage = SQLIPStorage(make_session_factory(self.engine))

    def tearDown(self):
        Base.metadata.drop_all(bind=self.engine)
        self.storage.close()

    def test_failed_allocation_rolls_back(self):
        self.storage.add_available("10.0.0.1")
        self.storage.allocate("10.0.0.1", "first")
        with self.assertRaises(AddressUnavailable):
            self.storage.allocate("10.0.0.1", "second")
        self.assertEqual(self.storage.count_allocated(), 1)
        self.assertEqual(self.storage.count_available(), 0)

    def test_backend_errors_become_storage_failure(self):
        Base.metadata.drop_all(bind=self.engine)
        with self.assertRaises(StorageFailure) as ctx:
            self.storage.count_available()
        self.assertIsInstance(ctx.exception.__cause__, OperationalError)
        init_db(self.engine)


if __name__ == '__main__':
    unittest.main()
