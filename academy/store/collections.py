TEACHERS = 'teachers'
CHILDREN = 'children'
COURSES = 'courses'
SUBSCRIPTIONS = 'subscriptions'
WEEKLY_CLASSES = 'weeklyClasses'
ADVANCE_CLASSES = 'advanceClasses'
PUBLIC_HOLIDAYS = 'publicHolidays'
DAILY_CLASSES = 'daily_classes'
SALARY_REPORTS = 'salaryReports'

ALL_COLLECTIONS = (
    TEACHERS,
    CHILDREN,
    COURSES,
    SUBSCRIPTIONS,
    WEEKLY_CLASSES,
    ADVANCE_CLASSES,
    PUBLIC_HOLIDAYS,
    DAILY_CLASSES,
    SALARY_REPORTS,
)
