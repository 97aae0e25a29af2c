import unittest

from ip_allocator import CIDRGuardian
from memory_storage import MemoryIPStorage
from reporting import available_cidrs, format_snapshot, used_cidrs
from schemas import StatusSnapshot, UsedCIDR


class TestUsedCIDRs(unittest.TestCase):

    def setUp(self):
        self.storage = MemoryIPStorage()
        for ip in ["10.0.0.0", "10.0.0.8", "10.0.0.20"]:
            self.storage.add_available(ip)

    def test_plain_allocations_are_excluded(self):
        self.storage.allocate("10.0.0.0", "10.0.0.0/29 - web tier")
        self.storage.allocate("10.0.0.8", "just a host")
        self.storage.allocate("10.0.0.20", "10.0.0.20/30-no spaces")
        self.assertEqual(used_cidrs(self.storage), {"10.0.0.0/29": "web tier"})

    def test_splits_on_first_separator(self):
        self.storage.allocate("10.0.0.0", "10.0.0.0/29 - team a - staging")
        self.assertEqual(used_cidrs(self.storage), {"10.0.0.0/29": "team a - staging"})

    def test_used_cidr_record(self):
        used = UsedCIDR(cidr="10.0.0.0/29", description="db")
        self.assertEqual(used.record(), "10.0.0.0/29 - db")
        self.assertEqual(UsedCIDR.parse(used.record()), used)
        self.assertIsNone(UsedCIDR.parse("db"))


class TestAvailableCIDRs(unittest.TestCase):

    def test_groups_by_24_regardless_of_block_size(self):
        guardian = CIDRGuardian()
        guardian.add_cidr("10.0.0.0/23", "two")
        guardian.add_cidr("10.0.5.128/30", "tiny")
        self.assertEqual(
            available_cidrs(guardian.storage),
            ["10.0.0.0/24", "10.0.1.0/24", "10.0.5.0/24"],
        )

    def test_numeric_order(self):
        storage = MemoryIPStorage()
        for ip in ["10.0.100.1", "10.0.20.1", "10.0.3.1"]:
            storage.add_available(ip)
        self.assertEqual(available_cidrs(storage), ["10.0.3.0/24", "10.0.20.0/24", "10.0.100.0/24"])

    def test_empty_pool(self):
        self.assertEqual(available_cidrs(MemoryIPStorage()), [])


class TestReport(unittest.TestCase):

    def test_snapshot(self):
        guardian = CIDRGuardian()
        guardian.add_cidr("192.168.0.0/24", "office")
        guardian.allocate_cidr(30, "voip")
        snapshot = guardian.snapshot()
        self.assertEqual(snapshot.managed_cidrs, {"192.168.0.0/24": "office"})
        self.assertEqual(snapshot.used_cidrs, {"192.168.0.0/30": "voip"})
        self.assertEqual(snapshot.available_count, 252)
        self.assertEqual(snapshot.allocated_count, 1)
        self.assertEqual(snapshot.available_cidrs, ["192.168.0.0/24"])

    def test_report_text(self):
        guardian = CIDRGuardian()
        guardian.add_cidr("192.168.0.0/24", "office")
        guardian.allocate_cidr(30, "voip")
        text = guardian.report()
        self.assertIn("Managed CIDRs:\n  192.168.0.0/24 - office\n", text)
        self.assertIn("Allocated CIDRs:\n  192.168.0.0/30 - voip\n", text)
        self.assertIn("available: 252", text)
        self.assertIn("allocated: 1", text)
        self.assertIn("Available CIDR overview:\n  192.168.0.0/24\n", text)

    def test_empty_report(self):
        snapshot = StatusSnapshot(
            managed_cidrs={}, used_cidrs={}, available_count=0, allocated_count=0, available_cidrs=[]
        )
        text = format_snapshot(snapshot)
        self.assertEqual(text.count("  none"), 3)
        self.assertIn("available: 0", text)


if __name__ == '__main__':
    unittest.main()
