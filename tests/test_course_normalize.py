"""Tests for course_normalize.py – both raw shapes into Course objects."""
from concordia_schedule_export.course_normalize import (
    SHAPE_CATALOG,
    SHAPE_SCHEDULE_FEED,
    classify_record,
    combine_course_data,
    normalize_course,
    normalize_course_code,
    normalize_courses,
)
from concordia_schedule_export.model import Meeting


def _feed_row(**overrides):
    row = {
        "subject": "COMP",
        "catalog": "248",
        "courseTitle": "OBJECT-ORIENTED PROGRAMMING I",
        "section": "AA",
        "componentCode": "LEC",
        "classStartTime": "11.45.00",
        "classEndTime": "13.00.00",
        "modays": "Y",
        "tuesdays": "N",
        "wednesdays": "Y",
        "thursdays": "N",
        "fridays": "N",
        "saturdays": "N",
        "sundays": "N",
        "locationCode": "H 937",
        "instructors": [{"firstName": "Ada", "lastName": "Lovelace"}],
        "classCapacity": "120",
        "enrollmentTotal": "98",
        "waitlistTotal": "n/a",
    }
    row.update(overrides)
    return row


DESCRIPTION = [
    {
        "title": "Object-Oriented Programming I",
        "creditValue": "3.5",
        "description": "Introduction to programming.",
        "prerequisites": "MATH 204",
        "subject": "COMP",
    }
]

CATALOG_COURSE = {
    "courseCode": "comp248",
    "title": "Object-Oriented\x00 Programming I",
    "credits": "3",
    "department": "Computer Science",
    "sections": [
        {
            "section": "AA",
            "type": "LEC",
            "instructor": "Ada Lovelace",
            "location": "H 937",
            "schedule": [
                {"days": "MoWe", "startTime": "11:45 AM", "endTime": "1:00 PM"},
                {"days": "", "startTime": "10:00", "endTime": "11:00"},
            ],
            "capacity": 120,
        },
        {"section": "", "type": "LAB", "schedule": [{"days": "Fr", "startTime": "09:00", "endTime": "10:00"}]},
        {"section": "AI-X", "type": "LAB", "schedule": [{"days": "Fr", "startTime": "bad", "endTime": "10:00"}]},
    ],
}


class TestNormalizeCourseCode:
    def test_forms(self):
        assert normalize_course_code("COMP 248") == "COMP 248"
        assert normalize_course_code("comp248") == "COMP 248"
        assert normalize_course_code("  SOEN   287 ") == "SOEN 287"
        assert normalize_course_code("ENCS 282-A") == "ENCS 282-A"

    def test_unrecognized(self):
        assert normalize_course_code("") == ""
        assert normalize_course_code("hello") == ""
        assert normalize_course_code(None) == ""


class TestClassifyRecord:
    def test_catalog(self):
        record = classify_record(CATALOG_COURSE)
        assert record.shape == SHAPE_CATALOG

    def test_feed_list(self):
        record = classify_record([_feed_row(), _feed_row(section="BB")])
        assert record.shape == SHAPE_SCHEDULE_FEED
        assert len(record.payload) == 2

    def test_single_feed_row(self):
        assert classify_record(_feed_row()).shape == SHAPE_SCHEDULE_FEED

    def test_not_a_course(self):
        assert classify_record("COMP 248") is None
        assert classify_record([1, 2, 3]) is None
        assert classify_record(None) is None


class TestScheduleFeed:
    def test_basic(self):
        course = combine_course_data([_feed_row()], DESCRIPTION, "COMP 248")
        assert course.code == "COMP 248"
        assert course.title == "Object-Oriented Programming I"
        assert course.credits == 3.5
        assert course.department == "COMP"
        assert course.prerequisites == "MATH 204"

        (section,) = course.sections
        assert section.section == "AA"
        assert section.type == "Lecture"
        assert section.instructor == "Ada Lovelace"
        assert section.capacity == 120
        assert section.enrolled == 98
        assert section.waitlist == 0
        assert section.schedule == (Meeting((0, 2), "11:45", "13:00", "H 937", "Lecture"),)

    def test_rows_merge_into_one_section(self):
        rows = [
            _feed_row(),
            _feed_row(modays="N", wednesdays="N", fridays="Y", classStartTime="08.45.00", classEndTime="10.00.00"),
        ]
        course = combine_course_data(rows, DESCRIPTION, "COMP 248")
        assert len(course.sections) == 1
        assert [m.days for m in course.sections[0].schedule] == [(0, 2), (4,)]

    def test_identical_rows_counted_once(self):
        course = combine_course_data([_feed_row(), _feed_row()], DESCRIPTION, "COMP 248")
        assert len(course.sections[0].schedule) == 1

    def test_same_label_different_component(self):
        rows = [_feed_row(), _feed_row(componentCode="TUT", fridays="Y", modays="N", wednesdays="N")]
        course = combine_course_data(rows, DESCRIPTION, "COMP 248")
        assert [(s.section, s.type) for s in course.sections] == [("AA", "Lecture"), ("AA", "Tutorial")]

    def test_invalid_rows_dropped(self):
        rows = [
            _feed_row(section="BB", modays="N", wednesdays="N"),       # no days
            _feed_row(section="CC", classStartTime="later"),           # bad time
            _feed_row(section=""),                                     # no id
            _feed_row(section="DD"),
        ]
        course = combine_course_data(rows, DESCRIPTION, "COMP 248")
        assert [s.section for s in course.sections] == ["DD"]

    def test_empty_feed_is_not_found(self):
        assert combine_course_data([], DESCRIPTION, "COMP 248") is None

    def test_code_from_rows_and_defaults(self):
        course = combine_course_data([_feed_row()], None)
        assert course.code == "COMP 248"
        assert course.title == "OBJECT-ORIENTED PROGRAMMING I"
        assert course.credits == 0.0
        assert course.department == "COMP"

    def test_missing_instructor(self):
        course = combine_course_data([_feed_row(instructors=[])], DESCRIPTION, "COMP 248")
        assert course.sections[0].instructor == ""


class TestCatalog:
    def test_catalog_record(self):
        course = normalize_course(CATALOG_COURSE)
        assert course.code == "COMP 248"
        assert course.title == "Object-Oriented Programming I"
        assert course.credits == 3.0
        assert [s.section for s in course.sections] == ["AA"]
        section = course.sections[0]
        assert section.capacity == 120
        assert section.enrolled == 0
        assert section.schedule == (Meeting((0, 2), "11:45", "13:00", "", "Lecture"),)

    def test_duplicate_sections_merge(self):
        raw = {
            "code": "SOEN 287",
            "sections": [
                {"section": "S", "type": "LEC", "schedule": {"days": "Tu", "startTime": "10:15", "endTime": "11:30"}},
                {"sectionCode": "S", "classType": "lec", "meetings": [{"day": "Th", "start": "1015", "end": "1130"}]},
            ],
        }
        course = normalize_course(raw)
        assert len(course.sections) == 1
        assert [m.days for m in course.sections[0].schedule] == [(1,), (3,)]

    def test_no_code(self):
        assert normalize_course({"title": "Nameless", "sections": []}) is None

    def test_course_code_argument(self):
        course = normalize_course({"title": "T", "sections": []}, course_code="ENGR 201")
        assert course.code == "ENGR 201"
        assert course.sections == ()

    def test_bad_numbers_default_to_zero(self):
        course = normalize_course({"code": "COMP 248", "credits": "three", "sections": []})
        assert course.credits == 0.0
        course = normalize_course({"code": "COMP 248", "credits": -2})
        assert course.credits == 0.0

    def test_listing_filters_empty(self):
        listing = [CATALOG_COURSE, {"code": "ENGR 201", "sections": []}, {"title": "no code"}, "junk"]
        courses = normalize_courses(listing)
        assert [c.code for c in courses] == ["COMP 248"]

    def test_listing_not_a_list(self):
        assert normalize_courses({"code": "COMP 248"}) == []


class TestIdempotence:
    def test_feed_twice_equal(self):
        rows = [_feed_row(), _feed_row(section="BB", fridays="Y")]
        assert combine_course_data(rows, DESCRIPTION, "COMP 248") == combine_course_data(rows, DESCRIPTION, "COMP 248")

    def test_catalog_twice_equal(self):
        assert normalize_course(CATALOG_COURSE) == normalize_course(CATALOG_COURSE)

    def test_input_not_mutated(self):
        rows = [_feed_row()]
        snapshot = [dict(r) for r in rows]
        normalize_course(rows, "COMP 248", DESCRIPTION)
        assert rows == snapshot
