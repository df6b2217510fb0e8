import logging
import queue
from datetime import date, datetime, timedelta

import pandas as pd
import plotly.express as px
import streamlit as st

from healthstride.utils.api import HealthStrideAPI, fetch_concurrently
from healthstride.utils.calculator import (
    calculate_age,
    calculate_bmi,
    classify_bmi,
    format_activity_level,
    format_height,
    kg_to_lb,
    net_calories,
    today,
)
from healthstride.utils.constants import DATE_FORMAT, DATETIME_FORMAT
from healthstride.utils.exceptions import BaseHealthStrideError, NoUserSelected
from healthstride.utils.models import (
    Activity,
    ActivityLevel,
    Gender,
    HealthMetrics,
    UserProfile,
)
from healthstride.utils.notifications import Notification, Notifier
from healthstride.utils.session import UserSession

logger = logging.getLogger(__name__)


# --- Constants and Configuration ---
class Config:
    """Application configuration constants"""
    PAGE_TITLE = "HealthStride"
    PAGE_LAYOUT = "wide"
    PAGES = ["Dashboard", "Metrics", "Activities", "Statistics", "Profile", "Users"]
    USERS_PAGE = "Users"
    RECENT_ACTIVITIES = 5
    QUICK_ADD_STEPS = 1000
    STATS_WINDOW_DAYS = 7
    COLOR_MAP = {
        "Steps": "#636EFA",
        "Consumed": "#EF553B",
        "Burned": "#00CC96",
        "Active Minutes": "#00CC96",
    }


# --- Notifications ---
class StreamlitNotifier(Notifier):
    """
    Queues notifications and renders them as toasts on the script thread.

    Gateway calls may run on worker threads (see ``fetch_concurrently``),
    where Streamlit elements cannot be created, so rendering is deferred to
    ``flush``.
    """

    ICONS = {"success": "✅", "error": "⚠️"}

    def __init__(self):
        self._pending = queue.Queue()

    def notify(self, notification: Notification) -> None:
        self._pending.put(notification)

    def flush(self) -> None:
        while not self._pending.empty():
            notification = self._pending.get_nowait()
            body = f"**{notification.title}**"
            if notification.description:
                body += f"\n\n{notification.description}"
            st.toast(body, icon=self.ICONS.get(notification.level))


# --- Per-browser-session state ---
def get_notifier() -> StreamlitNotifier:
    if "notifier" not in st.session_state:
        st.session_state.notifier = StreamlitNotifier()
    return st.session_state.notifier


def get_api() -> HealthStrideAPI:
    if "api" not in st.session_state:
        st.session_state.api = HealthStrideAPI(notifier=get_notifier())
    return st.session_state.api


def get_user_session() -> UserSession:
    if "user_session" not in st.session_state:
        st.session_state.user_session = UserSession()
    return st.session_state.user_session


def navigate(page: str) -> None:
    """Switch pages on the next run; the sidebar widget cannot be written once drawn"""
    st.session_state["next_page"] = page
    st.rerun()


def refresh() -> None:
    st.session_state["form_version"] = st.session_state.get("form_version", 0) + 1
    st.rerun()


def form_key(name: str) -> str:
    return f"{name}_{st.session_state.get('form_version', 0)}"


# --- Data Processing Utilities ---
class DataProcessor:
    """Handles data processing and transformation"""

    @staticmethod
    def metrics_frame(metrics: list[HealthMetrics]) -> pd.DataFrame:
        """One row per logged day with missing values read as zero"""
        rows = [
            {
                "date": datetime.strptime(m.date, DATE_FORMAT).date(),
                "Steps": m.steps or 0,
                "Consumed": m.calories_consumed or 0,
                "Burned": m.calories_burned or 0,
                "Active Minutes": m.active_minutes or 0,
            }
            for m in metrics
        ]
        if not rows:
            return pd.DataFrame(columns=["date", "label", "Steps", "Consumed", "Burned", "Active Minutes"])

        df = pd.DataFrame(rows).sort_values("date")
        df["label"] = df["date"].apply(lambda d: d.strftime("%b %d"))
        return df

    @staticmethod
    def activities_frame(activities: list[Activity]) -> pd.DataFrame:
        rows = [
            {
                "Activity": a.activity_type,
                "Start": a.start_time.replace("T", " "),
                "Duration (min)": round(a.duration_minutes or 0),
                "Calories": round(a.calories_burned or 0),
                "Distance": f"{a.distance_km:.2f} km" if a.distance_km else "-",
                "Pace": f"{a.average_pace:.1f} km/h" if a.average_pace else "-",
            }
            for a in activities
        ]
        return pd.DataFrame(rows)

    @staticmethod
    def parse_datetime(value: str | None) -> datetime:
        if not value:
            return datetime.now().replace(second=0, microsecond=0)
        # Backend timestamps may carry nanosecond fractions
        return pd.to_datetime(value).floor("s").to_pydatetime()


# --- Visualization Components ---
class VisualizationComponents:
    """Contains reusable visualization components"""

    @staticmethod
    def display_metrics_row(cards):
        """Displays a row of (title, value, subtitle) stat cards"""
        for column, (title, value, subtitle) in zip(st.columns(len(cards)), cards):
            with column:
                st.metric(title, value)
                if subtitle:
                    st.caption(subtitle)

    @staticmethod
    def create_line_chart(data, x_col, y_cols, title):
        """Creates a line chart with one trace per y column"""
        fig = px.line(
            data,
            x=x_col,
            y=y_cols,
            markers=True,
            labels={x_col: "Date", "value": title, "variable": ""},
            line_shape="spline",
            color_discrete_map=Config.COLOR_MAP,
            title=title,
        )
        fig.update_traces(line=dict(width=3))
        return fig

    @staticmethod
    def create_bar_chart(data, x_col, y_col, title):
        fig = px.bar(
            data,
            x=x_col,
            y=y_col,
            labels={x_col: "Date", y_col: title},
            color_discrete_sequence=[Config.COLOR_MAP[y_col]],
            title=title,
        )
        return fig


# --- Application Sections ---
class AppSections:
    """Contains the different pages of the application"""

    def __init__(self, api: HealthStrideAPI, session):
        self.api = api
        self.session = session

    def _user_form(self, key: str, user: UserProfile | None = None) -> UserProfile | None:
        """Profile fields shared by the create and edit forms; returns the submitted profile"""
        with st.form(key):
            col1, col2 = st.columns(2)
            with col1:
                name = st.text_input("Full Name *", value=user.name if user else "")
                dob = st.date_input(
                    "Date of Birth *",
                    value=(
                        datetime.strptime(user.date_of_birth, DATE_FORMAT).date()
                        if user
                        else date(1990, 1, 1)
                    ),
                    min_value=date(1900, 1, 1),
                    max_value=today(),
                )
                height = st.number_input(
                    "Height (cm) *",
                    min_value=50.0,
                    max_value=300.0,
                    value=float(user.height_cm) if user else 170.0,
                )
            with col2:
                email = st.text_input("Email *", value=user.email if user else "")
                genders = list(Gender)
                gender = st.selectbox(
                    "Gender *",
                    genders,
                    index=genders.index(user.gender) if user else 0,
                    format_func=lambda g: g.label,
                )
                weight = st.number_input(
                    "Weight (kg) *",
                    min_value=20.0,
                    max_value=500.0,
                    value=float(user.weight_kg) if user else 70.0,
                )
            levels = list(ActivityLevel)
            activity_level = st.selectbox(
                "Activity Level",
                levels,
                index=levels.index(user.activity_level) if user and user.activity_level else 0,
                format_func=lambda level: level.label,
            )
            submitted = st.form_submit_button("Save Changes" if user else "Create User")

        if not submitted:
            return None
        if not name.strip() or not email.strip():
            st.error("Name and email are required.")
            return None
        return UserProfile(
            id=user.id if user else None,
            name=name.strip(),
            email=email.strip(),
            date_of_birth=dob.strftime(DATE_FORMAT),
            gender=gender,
            height_cm=height,
            weight_kg=weight,
            activity_level=activity_level,
        )

    def render_users_page(self):
        """Profile selection and creation"""
        st.header("👥 Select a Profile")

        try:
            users = self.api.get_users()
        except BaseHealthStrideError as e:
            logger.error("Failed to load users: %s", e)
            users = []

        if not users:
            st.info("No users yet. Create the first profile below.")

        for row_start in range(0, len(users), 3):
            for column, user in zip(st.columns(3), users[row_start:row_start + 3]):
                with column:
                    with st.container(border=True):
                        st.subheader(user.name)
                        st.caption(user.email)
                        st.write(
                            f"{user.height_cm:.0f} cm · {user.weight_kg:.1f} kg · "
                            f"{format_activity_level(user.activity_level)}"
                        )
                        is_current = user.id == self.session.current_user_id
                        if st.button(
                            "Selected" if is_current else "Select",
                            key=f"select_user_{user.id}",
                            disabled=is_current,
                        ):
                            self.session.select_user(user.id)
                            navigate("Dashboard")

        st.subheader("➕ Create New User")
        new_user = self._user_form(form_key("create_user"))
        if new_user is None:
            return
        try:
            created = self.api.create_user(new_user)
        except BaseHealthStrideError:
            return
        self.session.select_user(created.id)
        navigate("Dashboard")

    def render_dashboard_page(self):
        """Today's numbers, metabolic targets and the latest activities"""
        user_id = self.session.require_user()
        st.header("📊 Dashboard")
        st.caption(today().strftime("%A, %B %d, %Y"))

        metrics, summary, activities = None, None, []
        try:
            results = fetch_concurrently(
                metrics=lambda: self.api.get_today_metrics(user_id),
                summary=lambda: self.api.get_dashboard_summary(user_id),
                activities=lambda: self.api.get_activities(user_id),
            )
            metrics = results["metrics"]
            summary = results["summary"]
            activities = results["activities"][: Config.RECENT_ACTIVITIES]
        except BaseHealthStrideError as e:
            logger.error("Failed to load dashboard data: %s", e)

        shown = metrics or HealthMetrics.empty(today())
        VisualizationComponents.display_metrics_row(
            [
                ("Steps Today", f"{shown.steps or 0:,}", "Keep moving!"),
                ("Calories Burned", f"{shown.calories_burned or 0:.0f}", "kcal"),
                ("Active Minutes", f"{shown.active_minutes or 0}", "minutes"),
                # Server-computed; shows zero rather than deriving it here
                ("Net Calories", f"{shown.net_calories or 0:.0f}", "consumed - burned"),
            ]
        )

        col1, col2 = st.columns(2)
        with col1:
            st.subheader("Today's Summary")
            if metrics:
                VisualizationComponents.display_metrics_row(
                    [
                        ("Distance", f"{metrics.distance_km or 0:.2f} km", None),
                        ("Water Intake", f"{metrics.water_intake_liters or 0:.1f} L", None),
                    ]
                )
                VisualizationComponents.display_metrics_row(
                    [
                        ("Sleep", f"{metrics.sleep_hours or 0:.1f} hrs", None),
                        ("Heart Rate", f"{metrics.heart_rate_avg or 0} bpm", None),
                    ]
                )
                if summary:
                    st.divider()
                    st.caption("Daily Targets")
                    st.write(f"BMR: **{summary.bmr:.0f} kcal** · TDEE: **{summary.tdee:.0f} kcal**")
                    st.write(f"BMI: **{summary.bmi:.1f}** · Age: **{summary.age}**")
            else:
                st.info("No metrics logged for today")

        with col2:
            st.subheader("Recent Activities")
            if not activities:
                st.info("No activities logged yet")
            for activity in activities:
                start = DataProcessor.parse_datetime(activity.start_time)
                with st.container(border=True):
                    left, right = st.columns(2)
                    left.markdown(f"**{activity.activity_type}**")
                    left.caption(start.strftime("%b %d, %I:%M %p"))
                    right.markdown(f"**{activity.duration_minutes or 0:.0f} min**")
                    right.caption(f"{activity.calories_burned or 0:.0f} kcal")

    def render_profile_page(self):
        """Personal details with locally derived body measurements"""
        user_id = self.session.require_user()
        st.header("👤 Profile")

        try:
            results = fetch_concurrently(
                user=lambda: self.api.get_user(user_id),
                bmr=lambda: self.api.get_bmr(user_id),
                tdee=lambda: self.api.get_tdee(user_id),
            )
        except BaseHealthStrideError as e:
            logger.error("Failed to load profile: %s", e)
            return

        user = results["user"]
        bmi = calculate_bmi(user.weight_kg, user.height_cm)
        bmi_category = classify_bmi(bmi)

        col1, col2 = st.columns(2)
        with col1:
            st.subheader("Personal Information")
            st.write(f"**Name:** {user.name}")
            st.write(f"**Email:** {user.email}")
            st.write(f"**Date of Birth:** {user.date_of_birth}")
            st.write(f"**Age:** {calculate_age(user.date_of_birth)} years")
            st.write(f"**Gender:** {Gender(user.gender).label}")
            st.write(f"**Activity Level:** {format_activity_level(user.activity_level)}")
        with col2:
            st.subheader("Body Measurements")
            VisualizationComponents.display_metrics_row(
                [
                    ("Height", f"{user.height_cm:.0f} cm", format_height(user.height_cm)),
                    ("Weight", f"{user.weight_kg:.1f} kg", f"{kg_to_lb(user.weight_kg)} lbs"),
                ]
            )
            st.metric("BMI", f"{bmi:.1f}")
            st.markdown(f":{bmi_category.color}[{bmi_category.label}]")

        st.subheader("Metabolic Rates")
        VisualizationComponents.display_metrics_row(
            [
                ("BMR", f"{results['bmr']:.0f} kcal", "Calories burned at rest"),
                ("TDEE", f"{results['tdee']:.0f} kcal", "Total daily energy expenditure"),
            ]
        )

        with st.expander("✏️ Edit Profile"):
            updated = self._user_form(form_key("edit_user"), user)
            if updated is None:
                return
            try:
                self.api.update_user(user_id, updated)
            except BaseHealthStrideError:
                return
            refresh()

    def render_metrics_page(self):
        """Daily metrics form for a chosen date"""
        user_id = self.session.require_user()
        st.header("❤️ Health Metrics")

        selected_date = st.date_input("Date", value=today(), max_value=today())
        day = selected_date.strftime(DATE_FORMAT)
        metrics = self.api.get_metrics_by_date(user_id, day) or HealthMetrics.empty(day)

        st.subheader(f"Health Metrics for {selected_date.strftime('%B %d, %Y')}")
        key = form_key(f"metrics_{day}")

        col1, col2 = st.columns(2)
        with col1:
            steps = st.number_input("Steps", min_value=0, value=metrics.steps or 0, key=f"{key}_steps")
            consumed = st.number_input(
                "Calories Consumed (kcal)", min_value=0.0, step=0.1,
                value=float(metrics.calories_consumed or 0), key=f"{key}_consumed",
            )
            distance = st.number_input(
                "Distance (km)", min_value=0.0, step=0.01,
                value=float(metrics.distance_km or 0), key=f"{key}_distance",
            )
            water = st.number_input(
                "Water Intake (liters)", min_value=0.0, step=0.1,
                value=float(metrics.water_intake_liters or 0), key=f"{key}_water",
            )
        with col2:
            burned = st.number_input(
                "Calories Burned (kcal)", min_value=0.0, step=0.1,
                value=float(metrics.calories_burned or 0), key=f"{key}_burned",
            )
            active_minutes = st.number_input(
                "Active Minutes", min_value=0, value=metrics.active_minutes or 0, key=f"{key}_active",
            )
            sleep = st.number_input(
                "Sleep Hours", min_value=0.0, step=0.1,
                value=float(metrics.sleep_hours or 0), key=f"{key}_sleep",
            )
            heart_rate = st.number_input(
                "Average Heart Rate (bpm)", min_value=0,
                value=metrics.heart_rate_avg or 0, key=f"{key}_heart_rate",
            )

        st.metric("Net Calories", f"{net_calories(consumed, burned):.0f} kcal")

        save_col, steps_col = st.columns(2)
        if save_col.button("💾 Save Metrics", type="primary"):
            entry = HealthMetrics(
                id=metrics.id,
                date=day,
                steps=int(steps),
                calories_consumed=consumed,
                calories_burned=burned,
                distance_km=distance,
                active_minutes=int(active_minutes),
                water_intake_liters=water,
                sleep_hours=sleep,
                heart_rate_avg=int(heart_rate),
            )
            try:
                self.api.save_metrics(user_id, entry)
            except BaseHealthStrideError:
                return
            refresh()

        if steps_col.button(f"➕ {Config.QUICK_ADD_STEPS} steps"):
            try:
                self.api.add_steps(user_id, Config.QUICK_ADD_STEPS, day)
            except BaseHealthStrideError:
                return
            refresh()

    def _activity_form(self, user_id: int, editing: Activity | None):
        with st.form(form_key("activity_form")):
            activity_type = st.text_input(
                "Activity Type *",
                value=editing.activity_type if editing else "",
                placeholder="e.g., Running, Cycling, Yoga",
            )
            start = DataProcessor.parse_datetime(editing.start_time if editing else None)
            end = DataProcessor.parse_datetime(editing.end_time if editing else None)
            col1, col2 = st.columns(2)
            with col1:
                start_date = st.date_input("Start Date *", value=start.date())
                start_time = st.time_input("Start Time *", value=start.time())
            with col2:
                end_date = st.date_input("End Date *", value=end.date())
                end_time = st.time_input("End Time *", value=end.time())
            distance = st.number_input(
                "Distance (km)", min_value=0.0, step=0.01,
                value=float(editing.distance_km or 0) if editing else 0.0,
            )
            notes = st.text_area(
                "Notes",
                value=(editing.notes or "") if editing else "",
                placeholder="Add any notes about this activity...",
            )
            submitted = st.form_submit_button("Update Activity" if editing else "Add Activity")

        if not submitted:
            return
        if not activity_type.strip():
            st.error("Activity type is required.")
            return

        activity = Activity(
            activity_type=activity_type.strip(),
            start_time=datetime.combine(start_date, start_time).strftime(DATETIME_FORMAT),
            end_time=datetime.combine(end_date, end_time).strftime(DATETIME_FORMAT),
            distance_km=distance,
            notes=notes,
        )
        try:
            if editing and editing.id:
                self.api.update_activity(user_id, editing.id, activity)
            else:
                self.api.create_activity(user_id, activity)
        except BaseHealthStrideError:
            return
        st.session_state.pop("editing_activity", None)
        refresh()

    def render_activities_page(self):
        """Activity log with add, edit and delete"""
        user_id = self.session.require_user()
        st.header("🏃 Activities")

        try:
            activities = self.api.get_activities(user_id)
        except BaseHealthStrideError as e:
            logger.error("Failed to load activities: %s", e)
            activities = []

        editing = st.session_state.get("editing_activity")
        with st.expander("✏️ Edit Activity" if editing else "➕ Add Activity", expanded=bool(editing)):
            if editing and st.button("Cancel editing"):
                st.session_state.pop("editing_activity", None)
                refresh()
            self._activity_form(user_id, editing)

        st.subheader("Your Activities")
        if not activities:
            st.info("No activities logged yet. Add your first activity to get started!")
            return

        st.dataframe(DataProcessor.activities_frame(activities), hide_index=True)

        for activity in activities:
            label, edit_col, delete_col = st.columns([4, 1, 1])
            label.write(f"{activity.activity_type} · {activity.start_time.replace('T', ' ')}")
            if edit_col.button("Edit", key=f"edit_activity_{activity.id}"):
                st.session_state["editing_activity"] = activity
                refresh()
            if delete_col.button("Delete", key=f"delete_activity_{activity.id}"):
                try:
                    self.api.delete_activity(user_id, activity.id)
                except BaseHealthStrideError:
                    return
                refresh()

    def render_statistics_page(self):
        """Seven-day aggregates and trends"""
        user_id = self.session.require_user()
        st.header("📈 Statistics")

        end_date = today()
        start_date = end_date - timedelta(days=Config.STATS_WINDOW_DAYS - 1)
        try:
            results = fetch_concurrently(
                stats=lambda: self.api.get_weekly_stats(user_id, start_date),
                metrics=lambda: self.api.get_metrics_range(user_id, start_date, end_date),
            )
        except BaseHealthStrideError as e:
            logger.error("Failed to load statistics: %s", e)
            st.info("Statistics are not available right now.")
            return

        stats = results["stats"]
        st.caption(f"Week of {stats.start_date} - {stats.end_date}")

        VisualizationComponents.display_metrics_row(
            [
                ("Total Steps", f"{stats.total_steps:,}", f"Avg: {stats.average_steps_per_day:.0f}/day"),
                ("Calories Burned", f"{stats.total_calories_burned:.0f}", "kcal this week"),
                (
                    "Active Minutes",
                    f"{stats.total_active_minutes}",
                    f"Avg: {stats.average_active_minutes_per_day:.0f}/day",
                ),
                ("Distance", f"{stats.total_distance_km:.1f} km", "total distance"),
            ]
        )

        df = DataProcessor.metrics_frame(results["metrics"])
        if df.empty:
            st.info("No metrics logged in the past week.")
        else:
            col1, col2 = st.columns(2)
            with col1:
                fig = VisualizationComponents.create_line_chart(df, "label", ["Steps"], "Steps Over Time")
                st.plotly_chart(fig, use_container_width=True)
            with col2:
                fig = VisualizationComponents.create_line_chart(
                    df, "label", ["Consumed", "Burned"], "Calories Tracking"
                )
                st.plotly_chart(fig, use_container_width=True)
            fig = VisualizationComponents.create_bar_chart(
                df, "label", "Active Minutes", "Active Minutes Per Day"
            )
            st.plotly_chart(fig, use_container_width=True)

        st.subheader("Weekly Summary")
        st.dataframe(
            pd.DataFrame(
                {
                    "Calories Consumed": [f"{stats.total_calories_consumed:.0f} kcal"],
                    "Calories Burned": [f"{stats.total_calories_burned:.0f} kcal"],
                    "Net Calories": [f"{stats.net_calories:.0f} kcal"],
                    "Total Distance": [f"{stats.total_distance_km:.2f} km"],
                }
            ),
            hide_index=True,
        )


# --- Main Application ---
def main():
    """Main application function"""
    st.set_page_config(layout=Config.PAGE_LAYOUT, page_title=Config.PAGE_TITLE)

    notifier = get_notifier()
    # Queued right before the previous run ended in a rerun
    notifier.flush()
    session = get_user_session()
    sections = AppSections(get_api(), session)

    if "next_page" in st.session_state:
        st.session_state["page"] = st.session_state.pop("next_page")

    st.sidebar.title("🏃 HealthStride")
    page = st.sidebar.radio("Navigate", Config.PAGES, key="page")
    if session.has_user:
        st.sidebar.caption(f"Active profile: #{session.current_user_id}")
        if st.sidebar.button("Forget profile"):
            session.clear()
            navigate(Config.USERS_PAGE)

    renderers = {
        "Dashboard": sections.render_dashboard_page,
        "Metrics": sections.render_metrics_page,
        "Activities": sections.render_activities_page,
        "Statistics": sections.render_statistics_page,
        "Profile": sections.render_profile_page,
        "Users": sections.render_users_page,
    }

    try:
        renderers[page]()
    except NoUserSelected:
        navigate(Config.USERS_PAGE)
    notifier.flush()


if __name__ == "__main__":
    main()
