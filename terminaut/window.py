"""Main window: project launcher grid and session tabs."""

from gi.repository import Adw, Gdk, GLib, Gtk

from .models import ViewMode
from .services import (
    PickerKey,
    PickerOutcome,
    ProjectRegistry,
    SessionCatalog,
    SessionCoordinator,
    SessionPicker,
)

PICKER_PAGE = "picker"

PICKER_KEYS = {
    Gdk.KEY_Up: PickerKey.UP,
    Gdk.KEY_Down: PickerKey.DOWN,
    Gdk.KEY_Return: PickerKey.CONFIRM,
    Gdk.KEY_KP_Enter: PickerKey.CONFIRM,
    Gdk.KEY_n: PickerKey.NEW,
    Gdk.KEY_N: PickerKey.NEW,
    Gdk.KEY_Escape: PickerKey.CANCEL,
}


def escape_markup(text: str) -> str:
    """Escape text for safe use in GTK markup."""
    return GLib.markup_escape_text(text)


class TerminautWindow(Adw.ApplicationWindow):
    """Single window switching between the launcher and the open sessions."""

    def __init__(
        self,
        registry: ProjectRegistry,
        catalog: SessionCatalog,
        coordinator: SessionCoordinator,
        **kwargs,
    ):
        super().__init__(**kwargs)

        self.registry = registry
        self.catalog = catalog
        self.coordinator = coordinator
        self.columns = registry.settings.launcher_columns
        self._session_pages: dict[str, Gtk.Widget] = {}

        self._setup_window()
        self._build_ui()
        self._connect_signals()
        self._rebuild_projects()

    def _setup_window(self):
        """Configure window properties."""
        self.set_title("Terminaut")
        self.set_default_size(1600, 1000)

    def _build_ui(self):
        """Build the launcher and session pages."""
        self.view_stack = Gtk.Stack()
        self.view_stack.set_transition_type(Gtk.StackTransitionType.CROSSFADE)

        # Launcher page
        launcher_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL)
        header = Adw.HeaderBar()
        self.status_label = Gtk.Label(label="")
        self.status_label.add_css_class("dim-label")
        header.pack_end(self.status_label)
        launcher_box.append(header)

        scrolled = Gtk.ScrolledWindow()
        scrolled.set_vexpand(True)
        scrolled.set_policy(Gtk.PolicyType.NEVER, Gtk.PolicyType.AUTOMATIC)

        self.project_grid = Gtk.FlowBox()
        self.project_grid.set_homogeneous(True)
        self.project_grid.set_min_children_per_line(self.columns)
        self.project_grid.set_max_children_per_line(self.columns)
        self.project_grid.set_selection_mode(Gtk.SelectionMode.SINGLE)
        self.project_grid.set_margin_start(24)
        self.project_grid.set_margin_end(24)
        self.project_grid.set_margin_top(24)
        self.project_grid.connect("child-activated", self._on_project_activated)
        scrolled.set_child(self.project_grid)
        launcher_box.append(scrolled)

        self.view_stack.add_named(launcher_box, ViewMode.LAUNCHER.value)

        # Session page
        self.session_stack = Gtk.Stack()
        self.session_stack.set_vexpand(True)
        self.view_stack.add_named(self.session_stack, ViewMode.SESSION.value)

        # Resume picker page
        picker_box = Gtk.Box(orientation=Gtk.Orientation.VERTICAL, spacing=12)
        picker_box.set_margin_start(48)
        picker_box.set_margin_end(48)
        picker_box.set_margin_top(24)
        self.picker_title = Gtk.Label(xalign=0)
        self.picker_title.add_css_class("title-2")
        picker_box.append(self.picker_title)
        hint = Gtk.Label(label="Enter: resume   N: new session   Esc: back", xalign=0)
        hint.add_css_class("dim-label")
        picker_box.append(hint)
        self.picker_list = Gtk.ListBox()
        self.picker_list.set_selection_mode(Gtk.SelectionMode.SINGLE)
        self.picker_list.add_css_class("boxed-list")
        picker_scrolled = Gtk.ScrolledWindow()
        picker_scrolled.set_vexpand(True)
        picker_scrolled.set_child(self.picker_list)
        picker_box.append(picker_scrolled)
        self.view_stack.add_named(picker_box, PICKER_PAGE)
        self.picker: SessionPicker | None = None

        self.set_content(self.view_stack)

        # Capture phase so shortcuts win over the focused terminal
        key_controller = Gtk.EventControllerKey()
        key_controller.set_propagation_phase(Gtk.PropagationPhase.CAPTURE)
        key_controller.connect("key-pressed", self._on_key_pressed)
        self.add_controller(key_controller)

    def _connect_signals(self):
        self.registry.connect("projects-changed", lambda _r: self._rebuild_projects())
        self.registry.connect("selection-changed", self._on_registry_selection_changed)
        self.coordinator.connect("view-mode-changed", self._on_view_mode_changed)
        self.coordinator.connect("sessions-changed", lambda _c: self._sync_sessions())
        self.coordinator.connect("selection-changed", lambda _c, _i: self._show_selected_session())

    # Launcher

    def _rebuild_projects(self):
        """Rebuild the project grid from the registry."""
        self.project_grid.remove_all()

        open_ids = set(self.coordinator.activation_order)
        for project in self.registry.projects:
            label = Gtk.Label()
            name = escape_markup(project.name)
            if project.id in open_ids:
                name = f"<b>{name}</b>"
            if project.has_activity:
                name = f"● {name}"
            label.set_markup(f"{name}\n<small>{escape_markup(project.display_path)}</small>")
            label.set_justify(Gtk.Justification.CENTER)
            label.set_margin_top(12)
            label.set_margin_bottom(12)
            self.project_grid.append(label)

        self.status_label.set_text(f"{len(self.registry)} projects")
        self._on_registry_selection_changed(self.registry, self.registry.selected_index)

    def _on_registry_selection_changed(self, _registry, index: int):
        child = self.project_grid.get_child_at_index(index)
        if child:
            self.project_grid.select_child(child)
            child.grab_focus()

        project = self.registry.selected_project
        if project:
            self.catalog.list_async(
                project.path, lambda sessions: self._on_sessions_listed(project, sessions)
            )

    def _on_sessions_listed(self, project, sessions):
        if project is self.registry.selected_project:
            self.status_label.set_text(f"{project.name}: {len(sessions)} sessions")

    def _on_project_activated(self, _grid, child):
        self.registry.selected_index = child.get_index()
        self._launch_selected()

    def _launch_selected(self, fresh: bool = False):
        project = self.registry.selected_project
        if project is None:
            return
        if fresh:
            self.coordinator.launch_fresh_session(project)
        else:
            self.coordinator.launch_project(project)

    # Resume picker

    def _request_picker(self):
        project = self.registry.selected_project
        if project is None:
            return
        self.catalog.list_async(project.path, lambda sessions: self._open_picker(project, sessions))

    def _open_picker(self, project, sessions):
        if self.coordinator.view_mode != ViewMode.LAUNCHER:
            return
        self.picker = SessionPicker(project, sessions)
        self.picker_title.set_text(f"Resume {project.name}")

        self.picker_list.remove_all()
        if not sessions:
            empty = Gtk.Label(label="No previous sessions.")
            empty.add_css_class("dim-label")
            self.picker_list.append(empty)
        for session in sessions:
            label = Gtk.Label(xalign=0)
            label.set_markup(
                f"{escape_markup(session.display_name)}\n"
                f"<small>{session.relative_time} · {session.message_count_label} · {session.formatted_size}</small>"
            )
            label.set_margin_top(6)
            label.set_margin_bottom(6)
            self.picker_list.append(label)

        self._sync_picker_selection()
        self.view_stack.set_visible_child_name(PICKER_PAGE)

    def _sync_picker_selection(self):
        row = self.picker_list.get_row_at_index(self.picker.selected_index)
        if row and self.picker.sessions:
            self.picker_list.select_row(row)
            row.grab_focus()

    def _on_picker_key(self, keyval) -> bool:
        key = PICKER_KEYS.get(keyval)
        if key is None or not self.picker.handle_key(key):
            return False

        if self.picker.outcome == PickerOutcome.NONE:
            self._sync_picker_selection()
            return True

        picker, self.picker = self.picker, None
        self.view_stack.set_visible_child_name(ViewMode.LAUNCHER.value)
        picker.apply(self.coordinator)
        return True

    # Sessions

    def _sync_sessions(self):
        """Add pages for new sessions and drop pages of closed ones."""
        live_ids = set()
        for session in self.coordinator.sessions:
            live_ids.add(session.id)
            if session.id in self._session_pages:
                continue
            if session.surface is not None:
                page = Gtk.ScrolledWindow()
                page.set_child(session.surface)
            else:
                page = Gtk.Label(label=f"Terminal unavailable for {session.project.name}")
                page.add_css_class("dim-label")
            self.session_stack.add_named(page, session.id)
            self._session_pages[session.id] = page

        for session_id in list(self._session_pages):
            if session_id not in live_ids:
                self.session_stack.remove(self._session_pages.pop(session_id))

        self._rebuild_projects()
        self._show_selected_session()

    def _show_selected_session(self):
        session = self.coordinator.selected_session
        if session is None or session.id not in self._session_pages:
            return
        self.session_stack.set_visible_child_name(session.id)
        self.set_title(f"Terminaut: {session.project.name}")
        if session.surface is not None and self.coordinator.view_mode == ViewMode.SESSION:
            session.surface.grab_focus()

    def _on_view_mode_changed(self, _coordinator, mode: str):
        self.picker = None
        self.view_stack.set_visible_child_name(mode)
        if mode == ViewMode.LAUNCHER.value:
            self.set_title("Terminaut")
            self._on_registry_selection_changed(self.registry, self.registry.selected_index)
        else:
            self._show_selected_session()

    # Keyboard

    def _on_key_pressed(self, _controller, keyval, _keycode, state):
        """Global shortcuts plus launcher navigation."""
        ctrl = state & Gdk.ModifierType.CONTROL_MASK
        shift = state & Gdk.ModifierType.SHIFT_MASK

        if ctrl:
            if keyval in (Gdk.KEY_l, Gdk.KEY_L):
                self.coordinator.return_to_launcher()
                return True
            if keyval in (Gdk.KEY_w, Gdk.KEY_W):
                self.coordinator.close_current_session()
                return True
            if keyval in (Gdk.KEY_Tab, Gdk.KEY_ISO_Left_Tab):
                if shift or keyval == Gdk.KEY_ISO_Left_Tab:
                    self.coordinator.previous_session()
                else:
                    self.coordinator.next_session()
                return True
            return False

        if self.picker is not None:
            return self._on_picker_key(keyval)

        if self.coordinator.view_mode != ViewMode.LAUNCHER:
            return False

        if keyval == Gdk.KEY_Up:
            self.registry.move_vertical(-1, self.columns)
        elif keyval == Gdk.KEY_Down:
            self.registry.move_vertical(1, self.columns)
        elif keyval == Gdk.KEY_Left:
            self.registry.move_horizontal(-1, self.columns)
        elif keyval == Gdk.KEY_Right:
            self.registry.move_horizontal(1, self.columns)
        elif keyval in (Gdk.KEY_Return, Gdk.KEY_KP_Enter):
            self._launch_selected()
        elif keyval in (Gdk.KEY_n, Gdk.KEY_N):
            self._launch_selected(fresh=True)
        elif keyval in (Gdk.KEY_s, Gdk.KEY_S):
            self._request_picker()
        elif keyval in (Gdk.KEY_r, Gdk.KEY_R):
            self.status_label.set_text("Scanning...")
            self.registry.scan_async()
        else:
            return False
        return True
