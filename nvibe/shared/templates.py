"""Built-in starter project shown before anything has been generated."""

from __future__ import annotations

from collections.abc import Sequence

from nvibe.shared.models.project import DEFAULT_PROJECT_NAME, GeneratedFile, ProjectState

PREVIEW_PATH = "preview.html"

_PREVIEW_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Preview</title>
    <script src="https://cdn.tailwindcss.com"></script>
    <script src="https://unpkg.com/react@18/umd/react.development.js"></script>
    <script src="https://unpkg.com/react-dom@18/umd/react-dom.development.js"></script>
    <script src="https://unpkg.com/@babel/standalone/babel.min.js"></script>
</head>
<body class="bg-gray-100">
    <div id="root"></div>
    <script type="text/babel">
        const App = () => {
            return (
                <div className="min-h-screen bg-gray-800 flex flex-col items-center justify-center text-white p-4">
                    <h1 className="text-5xl font-bold mb-4 bg-gradient-to-r from-purple-400 to-pink-500 text-transparent bg-clip-text">Welcome to N Vibe</h1>
                    <p className="text-xl text-gray-300">Enter a prompt above and click 'Generate' to create your app.</p>
                </div>
            );
        };

        const container = document.getElementById('root');
        const root = ReactDOM.createRoot(container);
        root.render(<App />);
    </script>
</body>
</html>"""

_INDEX_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Generated App</title>
    <script src="https://cdn.tailwindcss.com"></script>
</head>
<body>
    <div id="root"></div>
    <script type="module" src="index.tsx"></script>
</body>
</html>"""

_APP_TSX = """import React from 'react';

const App = () => {
  return (
    <div className="min-h-screen bg-gray-800 flex flex-col items-center justify-center text-white p-4">
        <h1 className="text-5xl font-bold mb-4 bg-gradient-to-r from-purple-400 to-pink-500 text-transparent bg-clip-text">Welcome to N Vibe</h1>
        <p className="text-xl text-gray-300">This is a placeholder for your generated app.</p>
    </div>
  );
};

export default App;
"""

_INDEX_TSX = """import React from 'react';
import ReactDOM from 'react-dom/client';
import App from './App';

const rootElement = document.getElementById('root');
if (!rootElement) {
  throw new Error("Could not find root element to mount to");
}

const root = ReactDOM.createRoot(rootElement);
root.render(
  <React.StrictMode>
    <App />
  </React.StrictMode>
);"""

DEFAULT_FILES: tuple[GeneratedFile, ...] = (
    GeneratedFile(path=PREVIEW_PATH, content=_PREVIEW_HTML),
    GeneratedFile(path="index.html", content=_INDEX_HTML),
    GeneratedFile(path="App.tsx", content=_APP_TSX),
    GeneratedFile(path="index.tsx", content=_INDEX_TSX),
)


def default_project() -> ProjectState:
    return ProjectState(
        files=DEFAULT_FILES,
        project_name=DEFAULT_PROJECT_NAME,
        project_description="",
    )


def is_pristine_files(files: Sequence[GeneratedFile]) -> bool:
    """True when the leading file still carries the starter content."""
    if not files:
        return False
    return files[0].content == DEFAULT_FILES[0].content
