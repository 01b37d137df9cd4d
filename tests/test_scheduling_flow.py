import unittest
from datetime import date

from freezegun import freeze_time

from academy.core.errors import NotFoundError, ValidationError
from academy.schemas import AdvanceStatus, ClassStatus, DailyClass
from academy.services.advance_class_service import (
    list_advance_classes,
    mark_advance_cancelled,
    mark_advance_completed,
    schedule_advance_class,
)
from academy.services.class_expansion_service import expand_upcoming, expand_weekly_classes
from academy.services.daily_class_service import (
    get_daily_class,
    list_daily_classes,
    reschedule_daily_class,
    transition_status,
)
from academy.services.holiday_service import add_holiday
from academy.services.salary_service import generate_for_period
from academy.services.weekly_class_service import create_weekly_class, deactivate_weekly_class, update_weekly_class
from academy.store import MemoryRecordStore
from academy.store.collections import ADVANCE_CLASSES, DAILY_CLASSES
from tests.support import add_student, add_teacher, fixed_clock


MARCH_START = date(2025, 3, 1)
MARCH_END = date(2025, 3, 31)


class SchedulingFlowTestCase(unittest.TestCase):
    def setUp(self):
        self.store = MemoryRecordStore()
        self.clock = fixed_clock(2025, 3, 1, 6, 0)
        self.teacher_id = add_teacher(self.store, 'Ahmed', timezone_name='Africa/Cairo', rate=20.0)
        self.student_id = add_student(self.store, 'Omar', timezone_name='America/New_York')
        self.template = create_weekly_class(
            self.store,
            teacher_id=self.teacher_id,
            student_id=self.student_id,
            day_of_week='Monday',
            start_time='15:00',
            end_time='16:00',
            subject='Tajweed',
            time_provider=self.clock,
        )


class WeeklyExpansionTests(SchedulingFlowTestCase):
    def test_expands_each_matching_weekday_in_utc(self):
        summary = expand_weekly_classes(self.store, MARCH_START, MARCH_END, time_provider=self.clock)
        self.assertEqual(summary['created'], 5)

        rows = list_daily_classes(self.store)
        self.assertEqual([row.occurrence_date for row in rows], ['2025-03-03', '2025-03-10', '2025-03-17', '2025-03-24', '2025-03-31'])
        first = rows[0]
        self.assertEqual((first.appointment_date, first.appointment_time), ('2025-03-03', '13:00'))
        self.assertEqual(first.weekly_class_id, self.template.id)
        self.assertEqual((first.start_time, first.end_time, first.duration), ('15:00', '16:00', 60))
        self.assertEqual(first.status, ClassStatus.SCHEDULED)

    def test_rerun_creates_no_duplicates(self):
        expand_weekly_classes(self.store, MARCH_START, MARCH_END, time_provider=self.clock)
        again = expand_weekly_classes(self.store, MARCH_START, MARCH_END, time_provider=self.clock)
        self.assertEqual(again['created'], 0)
        self.assertEqual(again['skipped_existing'], 5)
        self.assertEqual(len(list_daily_classes(self.store)), 5)

    def test_rescheduled_occurrence_is_not_recreated(self):
        expand_weekly_classes(self.store, MARCH_START, date(2025, 3, 7), time_provider=self.clock)
        (row,) = list_daily_classes(self.store)
        reschedule_daily_class(
            self.store,
            row.id,
            new_date='2025-03-04',
            new_time='15:00',
            reason='Teacher busy',
            time_provider=self.clock,
        )
        again = expand_weekly_classes(self.store, MARCH_START, date(2025, 3, 7), time_provider=self.clock)
        self.assertEqual(again['created'], 0)
        self.assertEqual(len(list_daily_classes(self.store)), 1)

    def test_public_holidays_are_skipped(self):
        add_holiday(self.store, name='Revolution Day', date='2025-03-10', time_provider=self.clock)
        summary = expand_weekly_classes(self.store, MARCH_START, MARCH_END, time_provider=self.clock)
        self.assertEqual(summary['created'], 4)
        self.assertEqual(summary['skipped_holiday'], 1)
        self.assertNotIn('2025-03-10', [row.occurrence_date for row in list_daily_classes(self.store)])

    def test_inactive_templates_are_ignored(self):
        deactivate_weekly_class(self.store, self.template.id, time_provider=self.clock)
        summary = expand_weekly_classes(self.store, MARCH_START, MARCH_END, time_provider=self.clock)
        self.assertEqual(summary['created'], 0)

    def test_template_with_archived_student_is_skipped_not_fatal(self):
        self.store.update('children', self.student_id, {'is_active': False})
        summary = expand_weekly_classes(self.store, MARCH_START, date(2025, 3, 7), time_provider=self.clock)
        self.assertEqual(summary['created'], 0)
        self.assertEqual(summary['skipped_invalid'], 1)

    def test_inverted_window_is_rejected(self):
        with self.assertRaises(ValidationError):
            expand_weekly_classes(self.store, MARCH_END, MARCH_START, time_provider=self.clock)

    @freeze_time('2025-03-02 10:00:00')
    def test_expand_upcoming_uses_current_local_day(self):
        summary = expand_upcoming(self.store, days=7)
        self.assertEqual(summary['created'], 1)
        self.assertEqual(list_daily_classes(self.store)[0].occurrence_date, '2025-03-03')


class TajweedMonthScenarioTests(SchedulingFlowTestCase):
    def test_month_of_classes_to_salary(self):
        expand_weekly_classes(self.store, MARCH_START, MARCH_END, time_provider=self.clock)
        rows = list_daily_classes(self.store)
        first = rows[0]
        self.assertEqual((first.appointment_date, first.appointment_time), ('2025-03-03', '13:00'))

        self.clock.advance(days=2, hours=7)
        running = transition_status(self.store, first.id, ClassStatus.RUNNING, time_provider=self.clock)
        self.assertIsNotNone(running.online_time)
        self.clock.advance(hours=1)
        taken = transition_status(self.store, first.id, ClassStatus.TAKEN, time_provider=self.clock)
        self.assertIsNotNone(taken.completed_at)
        self.assertEqual(len(taken.history), 3)

        for row in rows[1:3]:
            transition_status(self.store, row.id, ClassStatus.TAKEN, time_provider=self.clock)
        transition_status(self.store, rows[3].id, ClassStatus.ABSENT, time_provider=self.clock)

        (report,) = generate_for_period(self.store, 3, 2025, policy='unique', time_provider=self.clock)
        self.assertEqual(report.teacher_id, self.teacher_id)
        self.assertEqual(report.total_classes, 5)
        self.assertEqual(report.completed_classes, 3)
        self.assertAlmostEqual(report.total_hours, 3.0)
        self.assertAlmostEqual(report.rate_per_hour, 20.0)
        self.assertAlmostEqual(report.total_salary, 60.0)


class AdvanceClassTests(SchedulingFlowTestCase):
    def _schedule(self, **overrides):
        payload = {
            'weekly_class_id': self.template.id,
            'date': '2025-03-06',
            'time': '18:00',
            'reason': 'Make-up for missed Monday',
            'time_provider': self.clock,
        }
        payload.update(overrides)
        return schedule_advance_class(self.store, **payload)

    def test_schedule_snapshots_template_and_creates_linked_class(self):
        advance = self._schedule()
        self.assertEqual(advance.status, AdvanceStatus.SCHEDULED)
        self.assertEqual((advance.teacher_name, advance.student_name, advance.subject), ('Ahmed', 'Omar', 'Tajweed'))
        self.assertEqual((advance.scheduled_date, advance.scheduled_time), ('2025-03-06', '18:00'))

        linked = get_daily_class(self.store, advance.daily_class_id)
        self.assertEqual(linked.status, ClassStatus.ADVANCE)
        self.assertEqual(linked.advance_class_id, advance.id)
        self.assertEqual((linked.appointment_date, linked.appointment_time), ('2025-03-06', '16:00'))
        self.assertEqual((linked.start_time, linked.end_time), ('18:00', '19:00'))
        self.assertIsNone(linked.occurrence_date)

    def test_snapshot_does_not_follow_later_template_edits(self):
        advance = self._schedule()
        update_weekly_class(self.store, self.template.id, subject='Quran', time_provider=self.clock)
        (stored,) = list_advance_classes(self.store)
        self.assertEqual(stored.id, advance.id)
        self.assertEqual(stored.subject, 'Tajweed')

    def test_inactive_template_is_accepted_unknown_is_not_found(self):
        deactivate_weekly_class(self.store, self.template.id, time_provider=self.clock)
        self.assertEqual(self._schedule().status, AdvanceStatus.SCHEDULED)
        with self.assertRaises(NotFoundError):
            self._schedule(weekly_class_id='missing')

    def test_bad_zone_is_rejected_before_any_write(self):
        with self.assertRaises(ValidationError):
            self._schedule(timezone='Nowhere/City')
        self.assertEqual(self.store.get_all(ADVANCE_CLASSES), {})
        self.assertEqual(self.store.get_all(DAILY_CLASSES), {})

    def test_completion_is_terminal_and_marks_linked_class_taken(self):
        advance = self._schedule()
        self.clock.advance(days=5)
        done = mark_advance_completed(self.store, advance.id, time_provider=self.clock)
        self.assertEqual(done.status, AdvanceStatus.COMPLETED)
        self.assertEqual(done.updated_at, '2025-03-06T06:00:00Z')
        self.assertEqual(get_daily_class(self.store, advance.daily_class_id).status, ClassStatus.TAKEN)

        with self.assertRaises(ValidationError):
            mark_advance_completed(self.store, advance.id, time_provider=self.clock)
        with self.assertRaises(ValidationError):
            mark_advance_cancelled(self.store, advance.id, time_provider=self.clock)

    def test_cancellation_archives_linked_class(self):
        advance = self._schedule()
        cancelled = mark_advance_cancelled(self.store, advance.id, time_provider=self.clock)
        self.assertEqual(cancelled.status, AdvanceStatus.CANCELLED)
        linked = get_daily_class(self.store, advance.daily_class_id)
        self.assertFalse(linked.is_active)
        self.assertEqual(list_daily_classes(self.store), [])

    def test_list_newest_first_and_by_status(self):
        older = self._schedule(date='2025-03-05')
        newer = self._schedule(date='2025-03-12')
        mark_advance_completed(self.store, older.id, time_provider=self.clock)
        self.assertEqual([row.id for row in list_advance_classes(self.store)], [newer.id, older.id])
        self.assertEqual([row.id for row in list_advance_classes(self.store, status='completed')], [older.id])

    def test_completed_make_up_is_paid(self):
        advance = self._schedule()
        mark_advance_completed(self.store, advance.id, time_provider=self.clock)
        (report,) = generate_for_period(self.store, 3, 2025, time_provider=self.clock)
        self.assertEqual(report.completed_classes, 1)
        self.assertAlmostEqual(report.total_salary, 20.0)
        self.assertIsInstance(get_daily_class(self.store, advance.daily_class_id), DailyClass)


if __name__ == '__main__':
    unittest.main()
