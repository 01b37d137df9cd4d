"""Sample academy data for local runs: ``python -m academy.seed``."""

import logging

from academy.schemas import DayOfWeek, Student, Teacher
from academy.services.weekly_class_service import create_weekly_class
from academy.store import RecordStore, build_record_store
from academy.store.collections import CHILDREN, TEACHERS


logger = logging.getLogger(__name__)

SAMPLE_TEACHERS = (
    Teacher(name='Ahmed Hassan', email='ahmed@example.com', timezone='Africa/Cairo', hourly_rate=20.0, is_active=True),
    Teacher(name='Mariam Saleh', email='mariam@example.com', timezone='Europe/London', hourly_rate=18.0, is_active=True),
)
SAMPLE_STUDENTS = (
    Student(name='Omar', email='omar@example.com', timezone='America/New_York', is_active=True),
    Student(name='Layla', email='layla@example.com', timezone='Africa/Cairo', is_active=True),
    Student(name='Yusuf', email='yusuf@example.com', timezone='Europe/London', is_active=True),
)


def seed_sample_data(store: RecordStore) -> dict[str, int]:
    if store.get_all(TEACHERS):
        logger.info('seed_skipped reason=teachers_present')
        return {'teachers': 0, 'students': 0, 'weekly_classes': 0}

    teacher_ids = [store.create(TEACHERS, row.to_record()) for row in SAMPLE_TEACHERS]
    student_ids = [store.create(CHILDREN, row.to_record()) for row in SAMPLE_STUDENTS]
    plan = (
        (teacher_ids[0], student_ids[0], DayOfWeek.MONDAY, '15:00', '16:00', 'Tajweed'),
        (teacher_ids[0], student_ids[1], DayOfWeek.WEDNESDAY, '17:30', '18:30', 'Arabic'),
        (teacher_ids[1], student_ids[2], DayOfWeek.SATURDAY, '10:00', '10:45', 'Quran'),
    )
    for teacher_id, student_id, day, start, end, subject in plan:
        create_weekly_class(
            store,
            teacher_id=teacher_id,
            student_id=student_id,
            day_of_week=day,
            start_time=start,
            end_time=end,
            subject=subject,
        )
    return {'teachers': len(teacher_ids), 'students': len(student_ids), 'weekly_classes': len(plan)}


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s %(message)s')
    counts = seed_sample_data(build_record_store())
    logger.info('seed_done teachers=%s students=%s weekly_classes=%s', counts['teachers'], counts['students'], counts['weekly_classes'])
