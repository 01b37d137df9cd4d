import unittest

from academy.core.errors import PersistenceError, ValidationError
from academy.schemas import ClassStatus, DailyClass, Teacher
from academy.services.daily_class_service import create_daily_class, transition_status
from academy.services.live_view import LiveCollection
from academy.services.report_service import admin_dashboard, attendance_report, daily_report
from academy.store import MemoryRecordStore
from academy.store.collections import ADVANCE_CLASSES, DAILY_CLASSES, TEACHERS
from tests.support import add_student, add_teacher, fixed_clock


class FlakyStore(MemoryRecordStore):
    """Rejects reads of the listed collections, like a permission-denied backend."""

    def __init__(self, failing):
        super().__init__()
        self.failing = set(failing)

    def get_all(self, collection):
        if collection in self.failing:
            raise PersistenceError(f'get_all on {collection} failed: permission denied')
        return super().get_all(collection)


class ReportTestCase(unittest.TestCase):
    def setUp(self):
        self.store = self.make_store()
        self.clock = fixed_clock(2025, 3, 3, 10, 0)
        self.teacher_id = add_teacher(self.store, 'Ahmed', timezone_name='Africa/Cairo')
        self.omar = add_student(self.store, 'Omar')
        self.layla = add_student(self.store, 'Layla')

    def make_store(self):
        return MemoryRecordStore()

    def _class(self, student_id, day, time, status=None):
        row = create_daily_class(
            self.store,
            teacher_id=self.teacher_id,
            student_id=student_id,
            date=day,
            time=time,
            time_provider=self.clock,
        )
        if status is not None:
            transition_status(self.store, row.id, status, time_provider=self.clock)
        return row


class DailyReportTests(ReportTestCase):
    def test_classes_grouped_by_viewer_local_day(self):
        # 01:00 Cairo on the 4th is 23:00 UTC on the 3rd and 18:00 in New York on the 3rd.
        late = self._class(self.omar, '2025-03-04', '01:00')
        afternoon = self._class(self.layla, '2025-03-03', '15:00', ClassStatus.TAKEN)

        cairo = daily_report(self.store, '2025-03-04', timezone='Africa/Cairo')
        self.assertEqual([row['id'] for row in cairo['classes']], [late.id])

        new_york = daily_report(self.store, '2025-03-03', timezone='America/New_York')
        self.assertEqual([row['id'] for row in new_york['classes']], [afternoon.id, late.id])
        self.assertEqual(new_york['classes'][0]['local_time'], '08:00')
        self.assertEqual(new_york['counts'], {'taken': 1, 'scheduled': 1})

    def test_bad_zone_is_rejected(self):
        with self.assertRaises(ValidationError):
            daily_report(self.store, '2025-03-03', timezone='Nowhere/City')


class AttendanceReportTests(ReportTestCase):
    def test_per_student_buckets(self):
        self._class(self.omar, '2025-03-03', '15:00', ClassStatus.TAKEN)
        self._class(self.omar, '2025-03-10', '15:00', ClassStatus.ABSENT)
        self._class(self.omar, '2025-03-17', '15:00', ClassStatus.DECLINED)
        self._class(self.layla, '2025-03-05', '15:00', ClassStatus.LEAVE)
        self._class(self.layla, '2025-04-02', '15:00', ClassStatus.TAKEN)

        report = attendance_report(self.store, 3, 2025)
        self.assertEqual([row['student_name'] for row in report], ['Layla', 'Omar'])
        layla, omar = report
        self.assertEqual((omar['taken'], omar['absent'], omar['leave'], omar['other'], omar['total']), (1, 1, 0, 1, 3))
        self.assertAlmostEqual(omar['attendance_rate'], 0.3333)
        self.assertEqual((layla['leave'], layla['total']), (1, 1))

        (only_omar,) = attendance_report(self.store, 3, 2025, student_id=self.omar)
        self.assertEqual(only_omar['student_id'], self.omar)


class AdminDashboardTests(ReportTestCase):
    def test_counts(self):
        self._class(self.omar, '2025-03-03', '15:00')
        self._class(self.layla, '2025-03-04', '15:00')
        dashboard = admin_dashboard(self.store, timezone='Africa/Cairo', time_provider=self.clock)
        self.assertEqual(dashboard['date'], '2025-03-03')
        self.assertEqual(dashboard['active_teachers'], 1)
        self.assertEqual(dashboard['active_students'], 2)
        self.assertEqual(dashboard['today_classes'], 1)
        self.assertEqual(dashboard['degraded'], [])


class PartialFailureDashboardTests(ReportTestCase):
    def make_store(self):
        return FlakyStore(failing=())

    def test_rejected_collections_degrade_to_empty(self):
        self._class(self.omar, '2025-03-03', '15:00')
        self.store.failing = {ADVANCE_CLASSES, DAILY_CLASSES}
        dashboard = admin_dashboard(self.store, timezone='Africa/Cairo', time_provider=self.clock)
        self.assertEqual(dashboard['active_teachers'], 1)
        self.assertEqual(dashboard['today_classes'], 0)
        self.assertEqual(dashboard['pending_advance_classes'], 0)
        self.assertEqual(sorted(dashboard['degraded']), sorted([ADVANCE_CLASSES, DAILY_CLASSES]))

    def test_primary_reads_still_propagate_outside_the_dashboard(self):
        self.store.failing = {DAILY_CLASSES}
        with self.assertRaises(PersistenceError):
            daily_report(self.store, '2025-03-03')


class LiveCollectionTests(unittest.TestCase):
    def test_snapshot_updates_until_closed(self):
        store = MemoryRecordStore()
        add_teacher(store, 'Ahmed')
        seen = []
        view = LiveCollection(store, TEACHERS, Teacher, on_update=seen.append)
        self.assertEqual([row.name for row in view.rows], ['Ahmed'])
        self.assertEqual(view.updates, 1)

        add_teacher(store, 'Mariam')
        self.assertEqual(sorted(row.name for row in view.rows), ['Ahmed', 'Mariam'])
        self.assertEqual(len(seen), 2)

        view.close()
        view.close()
        self.assertTrue(view.closed)
        add_teacher(store, 'Yusuf')
        self.assertEqual(len(view.rows), 2)
        self.assertEqual(len(seen), 2)

    def test_late_callback_after_close_is_ignored(self):
        store = MemoryRecordStore()
        view = LiveCollection(store, DAILY_CLASSES, DailyClass)
        callback = view._handle_snapshot
        view.close()
        callback({'x': {'teacher_id': 't', 'student_id': 's', 'appointment_date': '2025-03-03', 'appointment_time': '13:00'}})
        self.assertEqual(view.rows, [])

    def test_context_manager_detaches_and_skips_malformed_records(self):
        store = MemoryRecordStore()
        store.create(DAILY_CLASSES, {'status': 'scheduled'})
        with LiveCollection(store, DAILY_CLASSES, DailyClass) as view:
            self.assertEqual(view.rows, [])
        self.assertTrue(view.closed)


if __name__ == '__main__':
    unittest.main()
